# student_loader/core/logging.py
import logging
import sys

# Configure standard Python logging
def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr) # stdout is kept for the result line
        ],
    )
    return logging.getLogger("student_loader")
