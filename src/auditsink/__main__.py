"""Allow running as `python -m auditsink`."""

from auditsink.rest_server import main

main()
