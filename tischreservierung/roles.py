"""Rollen und ihre Menüaktionen.

Jede Aktion ist eine einfache Funktion über dem ``ReservationStore``; Konsole und
HTTP-API rufen dieselben Funktionen mit der aktuellen ``Session`` auf.
"""
from dataclasses import dataclass
from enum import Enum

from .core import activity_log
from .core.errors import PermissionDenied, ReservationError
from .core.validation import is_keep_current


class Role(Enum):
    CUSTOMER = "customer"
    RECEPTIONIST = "receptionist"
    ADMIN = "admin"

    @property
    def label(self):
        return ROLE_LABELS[self]


ROLE_LABELS = {
    Role.CUSTOMER: "Kunde",
    Role.RECEPTIONIST: "Rezeption",
    Role.ADMIN: "Admin",
}


class Action(Enum):
    VIEW_OWN = "Meine Reservierungen anzeigen"
    VIEW_ALL = "Alle Reservierungen anzeigen"
    VIEW_TABLES = "Tischverfügbarkeit anzeigen"
    RESERVE = "Tisch reservieren"
    UPDATE = "Reservierung ändern"
    CANCEL = "Reservierung stornieren"
    VIEW_LOGS = "Protokoll anzeigen"
    CREATE_RECEPTIONIST = "Rezeptionistenkonto anlegen"


# Reihenfolge = Menüreihenfolge
ROLE_ACTIONS = {
    Role.CUSTOMER: (Action.VIEW_OWN, Action.VIEW_TABLES, Action.RESERVE, Action.UPDATE, Action.CANCEL),
    Role.RECEPTIONIST: (Action.VIEW_ALL, Action.VIEW_TABLES),
    Role.ADMIN: (Action.VIEW_LOGS, Action.VIEW_ALL, Action.VIEW_TABLES, Action.UPDATE, Action.CANCEL,
                 Action.CREATE_RECEPTIONIST),
}


@dataclass(frozen=True)
class Session:
    role: Role
    username: str


def is_allowed(session, action):
    return action in ROLE_ACTIONS[session.role]


def _require(session, action):
    if not is_allowed(session, action):
        message = f"Aktion '{action.value}' ist für {session.role.label} nicht erlaubt."
        activity_log.log_error(session, action.value, message)
        raise PermissionDenied(message)


def _customer_filter(session):
    return session.username if session.role is Role.CUSTOMER else None


def login(accounts, role, username, password):
    session = accounts.authenticate(role, username, password)
    activity_log.log_login(session)
    return session


def register_customer(accounts, username, password):
    session = accounts.register_customer(username, password)
    activity_log.log_login(session)
    return session


def view_reservations(store, session):
    if session.role is Role.CUSTOMER:
        _require(session, Action.VIEW_OWN)
        return store.list_by_customer(session.username)
    _require(session, Action.VIEW_ALL)
    return store.list_all()


def view_tables(store, session):
    _require(session, Action.VIEW_TABLES)
    return store.table_availability()


def reserve_table(store, session, phone, party_size, date_str, time_str, table_index):
    _require(session, Action.RESERVE)
    try:
        reservation_id = store.reserve(session.username, phone, party_size, date_str, time_str, table_index)
    except ReservationError as e:
        activity_log.log_error(session, "Tischreservierung fehlgeschlagen", e.message,
                               name=session.username, phone=phone, party_size=party_size,
                               date_str=date_str, time_str=time_str, table_index=table_index)
        raise
    activity_log.log_action(session, "Tisch reserviert",
                            f"{table_index + 1} für {party_size} am {date_str} um {time_str}",
                            reservation=store.get(reservation_id))
    return reservation_id


def update_reservation(store, session, reservation_id, **changes):
    _require(session, Action.UPDATE)
    if session.role is Role.CUSTOMER and not is_keep_current(changes.get('new_id')):
        message = "Kunden dürfen die Reservierungs-ID nicht ändern."
        activity_log.log_error(session, "Reservierung ändern fehlgeschlagen", message, reservation_id=reservation_id)
        raise PermissionDenied(message)
    try:
        updated = store.update(reservation_id, _customer_filter(session), **changes)
    except ReservationError as e:
        activity_log.log_error(session, "Reservierung ändern fehlgeschlagen", e.message, reservation_id=reservation_id)
        raise
    activity_log.log_action(session, "Reservierung geändert", reservation_id.strip().upper(), reservation=updated)
    return updated


def cancel_reservation(store, session, reservation_id):
    _require(session, Action.CANCEL)
    try:
        cancelled = store.cancel(reservation_id, _customer_filter(session))
    except ReservationError as e:
        activity_log.log_error(session, "Stornierung fehlgeschlagen", e.message, reservation_id=reservation_id)
        raise
    activity_log.log_action(session, "Reservierung storniert", cancelled.id, reservation=cancelled)
    return cancelled


def view_logs(session, log_path):
    _require(session, Action.VIEW_LOGS)
    return activity_log.read_log(log_path)


def create_receptionist(accounts, session, username, password):
    _require(session, Action.CREATE_RECEPTIONIST)
    try:
        accounts.create_receptionist(username, password)
    except ReservationError as e:
        activity_log.log_error(session, "Rezeptionistenkonto anlegen fehlgeschlagen", e.message)
        raise
    activity_log.log_action(session, "Rezeptionistenkonto angelegt", f"Benutzername: {username}")
