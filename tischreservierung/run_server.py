import logging

from waitress import serve

from . import config
from .app import create_app

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    app = create_app()
    logger.info("Starte Tischreservierungs-Server mit Waitress...")
    logger.info(f"Programm läuft auf http://{config.HOST}:{config.PORT}")
    # Ein Thread: der ReservationStore ist nicht für parallelen Zugriff gebaut
    serve(app, host=config.HOST, port=config.PORT, threads=1)


if __name__ == '__main__':
    main()
