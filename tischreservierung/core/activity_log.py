"""Aktivitätsprotokoll (Anmeldungen, Aktionen, Fehler) in ``logs.txt``.

Jeder Eintrag ist mehrzeilig und durch eine Leerzeile vom nächsten getrennt.
Passwörter werden nie protokolliert.
"""
import logging
import os

ACTIVITY_LOGGER_NAME = 'tischreservierung.activity'
ENTRY_FORMAT = '[%(asctime)s] %(message)s\n'
NOT_AVAILABLE = "N/A"

activity_logger = logging.getLogger(ACTIVITY_LOGGER_NAME)


def configure_activity_log(path):
    for handler in list(activity_logger.handlers):
        if isinstance(handler, logging.FileHandler):
            activity_logger.removeHandler(handler)
            handler.close()
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = logging.FileHandler(path, encoding='utf-8')
    handler.setFormatter(logging.Formatter(ENTRY_FORMAT))
    activity_logger.addHandler(handler)
    activity_logger.setLevel(logging.INFO)
    # Nicht zusätzlich auf die Konsole, sonst landet es mitten im Menü
    activity_logger.propagate = False
    return handler


def describe_reservation(reservation=None, reservation_id="", name="", phone="", party_size=0,
                         date_str="", time_str="", table_index=None):
    if reservation is not None:
        reservation_id, name, phone = reservation.id, reservation.name, reservation.phone
        party_size, date_str, time_str = reservation.party_size, reservation.date, reservation.time
        table_index = reservation.table_index
    if not any([reservation_id, name, phone, party_size, date_str, time_str, table_index is not None]):
        return ""
    return " | ".join([
        f"ID: {reservation_id or NOT_AVAILABLE}",
        f"Name: {name or NOT_AVAILABLE}",
        f"Kontakt: {phone or NOT_AVAILABLE}",
        f"Personen: {party_size if party_size else NOT_AVAILABLE}",
        f"Datum: {date_str or NOT_AVAILABLE}",
        f"Uhrzeit: {time_str or NOT_AVAILABLE}",
        f"Tisch: {table_index + 1 if table_index is not None else NOT_AVAILABLE}",
    ])


def log_login(session):
    activity_logger.info(f"Konto-Log | Anmeldung als {session.role.label}: {session.username}")


def log_action(session, action, details, reservation=None, **fields):
    entry = f"Reservierungs-Log\nAktion: {action} durch {session.role.label}: {session.username}\nDetails: {details}"
    described = describe_reservation(reservation, **fields)
    if described:
        entry += "\n" + described
    activity_logger.info(entry)


def log_error(session, action, error_message, reservation=None, **fields):
    entry = f"Reservierungs-Fehlerlog\nAktion: {action} durch {session.role.label}: {session.username}\nFehler: {error_message}"
    described = describe_reservation(reservation, **fields)
    if described:
        entry += "\n" + described
    activity_logger.warning(entry)


def read_log(path):
    if not os.path.exists(path):
        return None
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()
