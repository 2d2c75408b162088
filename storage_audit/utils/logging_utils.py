import logging
import traceback

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def exc_to_text(e: Exception) -> str:
    return "".join(traceback.format_exception(type(e), e, e.__traceback__))

def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
    # the SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(logging.DEBUG if verbose else logging.WARNING)
