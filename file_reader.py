import logging
import os

from errors import UnsupportedFormatError
from osm_reader import read_osm
from xodr_reader import read_xodr

logger = logging.getLogger(__name__)

READERS = {
    ".osm": read_osm,
    ".xodr": read_xodr,
}


def parse_map_file(path):
    """Parses a map file into a graph, choosing the reader by file extension

    Args:
        path (string): Filepath to an .osm or .xodr file (extension is case-insensitive)

    Returns:
        GraphData: the road graph

    Raises:
        UnsupportedFormatError: for any other extension
    """
    extension = os.path.splitext(os.fspath(path))[1].lower()
    reader = READERS.get(extension)
    if reader is None:
        raise UnsupportedFormatError(extension)
    logger.debug("Reading %s with %s", path, reader.__name__)
    return reader(path)
