import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(root: Optional[str] = None, level: str = "INFO"):
    logger.remove()
    # En Lambda el filesystem es efímero: solo stdout (CloudWatch)
    if root:
        logdir = Path(root) / datetime.now().strftime("%Y/%m/%d")
        logdir.mkdir(parents=True, exist_ok=True)
        logfile = logdir / "app.log"
        logger.add(
            str(logfile),
            rotation="00:00",
            retention="14 days",
            level=level,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
    logger.add(sys.stdout, level=level, backtrace=True, diagnose=False)
    return logger
