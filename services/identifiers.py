# services/identifiers.py
import logging
import random
import time
import uuid

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    """
    Id generado en el cliente para las altas optimistas.
    Usa uuid4; si la fuente aleatoria del sistema no está disponible
    cae a timestamp + sufijo aleatorio.
    """
    try:
        return str(uuid.uuid4())
    except (NotImplementedError, OSError) as exc:
        logger.warning("uuid4 no disponible (%s), se usa id por timestamp", exc)
        return fallback_record_id()


def fallback_record_id() -> str:
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices("abcdefghijklmnopqrstuvwxyz0123456789", k=9))
    return f"{millis:x}-{suffix}"
