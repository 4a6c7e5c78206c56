'''
Module de configuration pour le logger centralisé de l'application.

Loguru fournit un logger pré-configuré avec une sortie console colorée
et des fichiers rotatifs par niveau dans `settings.LOG_DIR`.
'''

import sys
import os
from loguru import logger

from app.config import settings

# ==============================================================================
# Configuration de Loguru
# ==============================================================================

LOG_DIR = settings.LOG_DIR

if not os.path.exists(LOG_DIR):
    os.makedirs(LOG_DIR)

# Supprimer le handler par défaut pour éviter les doublons
logger.remove()

LOG_FORMAT_CONSOLE = (
    "<white>{time:YYYY-MM-DD HH:mm:ss.SSS}</white> | "
    "<level>{level: <8}</level> | "
    "<light-black>{name}:{function}:{line}</light-black> - "
    "<level><b>{message}</b></level>"
)
LOG_FORMAT_FILE = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
    "{level: <8} | "
    "{name}:{function}:{line} - "
    "{message}"
)

logger.add(
    sys.stderr,
    level=settings.LOG_LEVEL,
    format=LOG_FORMAT_CONSOLE,
    colorize=True,
    backtrace=True,
    diagnose=True
)

# Un fichier par famille de niveaux : (nom, niveau minimal, niveaux retenus)
FILE_SINKS = (
    ("debug.log", "DEBUG", ("DEBUG",)),
    ("info.log", "INFO", ("INFO", "WARNING")),
    ("error.log", "ERROR", None),
)


def _level_filter(levels):
    if levels is None:
        return None
    return lambda record: record["level"].name in levels


# Rotation journalière, conservation de 30 jours, compression.
for filename, level, levels in FILE_SINKS:
    logger.add(
        os.path.join(LOG_DIR, filename),
        level=level,
        format=LOG_FORMAT_FILE,
        rotation="00:00",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
        filter=_level_filter(levels),
        backtrace=levels is None,
        diagnose=levels is None,
    )
