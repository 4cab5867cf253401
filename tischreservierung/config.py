import os
from datetime import datetime

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.environ.get('TISCHRES_DATA_DIR', os.path.join(BASE_DIR, 'data'))

RESERVATIONS_FILE_NAME = 'reservations.txt'
NEXT_ID_FILE_NAME = 'next_id.txt'
CUSTOMER_ACCOUNTS_FILE_NAME = 'customer_accounts.txt'
RECEPTIONIST_ACCOUNTS_FILE_NAME = 'receptionist_accounts.txt'
ACTIVITY_LOG_FILE_NAME = 'logs.txt'
BACKUP_DIR_NAME = 'backups'
MAX_BACKUPS_TO_KEEP = 10

TABLE_COUNT = 10

ADMIN_USERNAME = os.environ.get('TISCHRES_ADMIN_USER', 'admin')
ADMIN_PASSWORD = os.environ.get('TISCHRES_ADMIN_PASSWORD', 'admin123')

SECRET_KEY = os.environ.get('TISCHRES_SECRET_KEY') or os.urandom(24)
HOST = os.environ.get('TISCHRES_HOST', '127.0.0.1')
PORT = int(os.environ.get('TISCHRES_PORT', '5001'))

LOG_LEVEL = os.environ.get('TISCHRES_LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s'

NOW_FORMAT = '%Y-%m-%d %H:%M'


def reference_now():
    """Aktueller Bezugszeitpunkt; ``TISCHRES_NOW`` friert ihn fest."""
    pinned = os.environ.get('TISCHRES_NOW')
    if pinned:
        return datetime.strptime(pinned, NOW_FORMAT)
    return datetime.now()
