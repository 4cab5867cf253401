import os
from datetime import datetime

import pytest

from tischreservierung.app import create_app
from tischreservierung.core.accounts import AccountBook
from tischreservierung.core.activity_log import activity_logger, configure_activity_log
from tischreservierung.core.manager import ReservationStore
from tischreservierung.roles import Role, Session

FIXED_NOW = datetime(2025, 5, 22, 22, 19)
TODAY = "2025-05-22"
TOMORROW = "2025-05-23"
PHONE = "123-456-7890"


def fixed_now():
    return FIXED_NOW


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / 'data')


@pytest.fixture
def store(data_dir):
    return ReservationStore(data_dir, now=fixed_now)


@pytest.fixture
def accounts(data_dir):
    return AccountBook(data_dir, admin_username='admin', admin_password='admin123')


@pytest.fixture
def log_path(data_dir):
    path = os.path.join(data_dir, 'logs.txt')
    configure_activity_log(path)
    yield path
    for handler in list(activity_logger.handlers):
        activity_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def customer():
    return Session(Role.CUSTOMER, 'alice')


@pytest.fixture
def other_customer():
    return Session(Role.CUSTOMER, 'bob')


@pytest.fixture
def receptionist():
    return Session(Role.RECEPTIONIST, 'empfang1')


@pytest.fixture
def admin():
    return Session(Role.ADMIN, 'admin')


@pytest.fixture
def app(store, accounts, data_dir, log_path):
    app = create_app(store=store, accounts=accounts, data_dir=data_dir, activity_log_path=log_path)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def read_file(path):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()
