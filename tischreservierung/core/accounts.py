import logging
import os

from werkzeug.security import check_password_hash, generate_password_hash

from ..config import (
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    CUSTOMER_ACCOUNTS_FILE_NAME,
    DATA_DIR,
    RECEPTIONIST_ACCOUNTS_FILE_NAME,
)
from ..roles import Role, Session
from .errors import AuthenticationError, Conflict, ValidationError
from .validation import is_valid_credential, is_valid_customer_name

logger = logging.getLogger(__name__)


def _load_accounts(path):
    accounts = {}
    if not os.path.exists(path):
        return accounts
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.rstrip('\r\n')
            if not line:
                continue
            username, sep, password_hash = line.partition('|')
            if not sep:
                logger.error(f"Ungültige Kontozeile in {path} übersprungen.")
                continue
            accounts[username] = password_hash
    return accounts


def _save_accounts(path, accounts):
    with open(path, 'w', encoding='utf-8') as f:
        for username, password_hash in accounts.items():
            f.write(f"{username}|{password_hash}\n")


class AccountBook:
    """Kunden- und Rezeptionistenkonten; der Admin kommt aus der Konfiguration."""

    def __init__(self, data_dir=DATA_DIR, admin_username=ADMIN_USERNAME, admin_password=ADMIN_PASSWORD):
        os.makedirs(data_dir, exist_ok=True)
        self.customer_file = os.path.join(data_dir, CUSTOMER_ACCOUNTS_FILE_NAME)
        self.receptionist_file = os.path.join(data_dir, RECEPTIONIST_ACCOUNTS_FILE_NAME)
        self.admin_username = admin_username
        self.admin_password = admin_password
        self.customers = _load_accounts(self.customer_file)
        self.receptionists = _load_accounts(self.receptionist_file)

    def customer_exists(self, username):
        return username in self.customers

    def receptionist_exists(self, username):
        return username in self.receptionists

    def register_customer(self, username, password):
        if not is_valid_customer_name(username) or not isinstance(password, str) or not password:
            raise ValidationError('username', "Benutzername und Passwort dürfen nicht leer sein "
                                              "und weder '|' noch Zeilenumbrüche enthalten.")
        # Reservierungen speichern den Namen getrimmt
        username = username.strip()
        if username in self.customers:
            raise Conflict("Konto existiert bereits. Bitte anderen Benutzernamen wählen.")
        self.customers[username] = generate_password_hash(password)
        _save_accounts(self.customer_file, self.customers)
        logger.info(f"Kundenkonto '{username}' angelegt.")
        return Session(Role.CUSTOMER, username)

    def create_receptionist(self, username, password):
        if not is_valid_credential(username):
            raise ValidationError('username', "Ungültiger Benutzername. Nur Buchstaben und Ziffern erlaubt.")
        if not is_valid_credential(password):
            raise ValidationError('password', "Ungültiges Passwort. Nur Buchstaben und Ziffern erlaubt.")
        if username in self.receptionists:
            raise Conflict("Benutzername existiert bereits.")
        self.receptionists[username] = generate_password_hash(password)
        _save_accounts(self.receptionist_file, self.receptionists)
        logger.info(f"Rezeptionistenkonto '{username}' angelegt.")

    def authenticate(self, role, username, password):
        username = username.strip() if isinstance(username, str) else None
        if not isinstance(password, str):
            password = None
        if role is Role.ADMIN:
            if username == self.admin_username and password == self.admin_password:
                return Session(role, username)
        else:
            accounts = self.customers if role is Role.CUSTOMER else self.receptionists
            password_hash = accounts.get(username)
            if password_hash and check_password_hash(password_hash, password or ''):
                return Session(role, username)
        logger.warning(f"Fehlgeschlagener Login-Versuch als {role.value} für User: {username}")
        raise AuthenticationError("Ungültige Zugangsdaten. Bitte erneut versuchen.")
