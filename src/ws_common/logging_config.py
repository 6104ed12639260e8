"""Root logger configuration, applied once at startup."""

import logging

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=_FORMAT)
    # google-cloud and urllib3 are chatty at DEBUG
    for noisy in ("google", "urllib3"):
        logging.getLogger(noisy).setLevel(max(logging.getLogger().level, logging.INFO))
