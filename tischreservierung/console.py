"""Interaktives Textmenü für Kunden, Rezeption und Admin."""
import logging
import os
import sys

import click

from . import config, roles
from .core import activity_log, validation
from .core.accounts import AccountBook
from .core.errors import AuthenticationError, Conflict, ReservationError
from .core.manager import ReservationStore
from .core.models import STATUS_BOOKED, STATUS_FREE, table_display_name
from .roles import Action, Role

CONFIRM_ANSWERS = ('y', 'yes', 'j', 'ja')
ROLE_CHOICES = (Role.RECEPTIONIST, Role.CUSTOMER, Role.ADMIN)
RESERVATION_HEADER = "ID\t\tKunde\t\tPersonen\tDatum\t\tUhrzeit\tKontakt\t\tTisch"


def ask(text):
    return click.prompt(text, default='', show_default=False).strip()


def ask_number(text, min_value, max_value):
    while True:
        value = validation.parse_numeric_input(ask(text), min_value, max_value)
        if value is not None:
            return value
        click.echo(f"Ungültige Eingabe. Bitte eine einzelne Zahl zwischen {min_value} und {max_value} eingeben.")


def confirm(text):
    return ask(f"{text} (J/N)").lower() in CONFIRM_ANSWERS


def format_reservation(res):
    return f"{res.id}\t\t{res.name}\t\t{res.party_size}\t\t{res.date}\t{res.time}\t{res.phone}\t{res.table_index + 1}"


class Console:
    def __init__(self, store, accounts, log_path):
        self.store = store
        self.accounts = accounts
        self.log_path = log_path
        self.handlers = {
            Action.VIEW_OWN: self.show_reservations,
            Action.VIEW_ALL: self.show_reservations,
            Action.VIEW_TABLES: self.show_tables,
            Action.RESERVE: self.reserve,
            Action.UPDATE: self.update,
            Action.CANCEL: self.cancel,
            Action.VIEW_LOGS: self.show_logs,
            Action.CREATE_RECEPTIONIST: self.create_receptionist,
        }

    def run(self):
        while True:
            click.echo("\n[Rollenauswahl]")
            for number, role in enumerate(ROLE_CHOICES, start=1):
                click.echo(f"{number}. {role.label}")
            click.echo(f"{len(ROLE_CHOICES) + 1}. Beenden")
            choice = ask_number("Rolle wählen", 1, len(ROLE_CHOICES) + 1)
            if choice == len(ROLE_CHOICES) + 1:
                return
            session = self.login(ROLE_CHOICES[choice - 1])
            if session is not None:
                self.menu(session)

    # --- Anmeldung ---

    def login(self, role):
        if role is Role.CUSTOMER:
            click.echo("\n1. Kundenkonto anlegen\n2. Kundenkonto anmelden")
            if ask_number("Auswahl", 1, 2) == 1:
                return self.register_customer()
        while True:
            username = ask(f"{role.label}-Benutzername (leer = zurück)")
            if not username:
                return None
            password = ask("Passwort")
            if role is Role.RECEPTIONIST and not (validation.is_valid_credential(username)
                                                  and validation.is_valid_credential(password)):
                click.echo("Ungültige Eingabe. Nur Buchstaben und Ziffern erlaubt.")
                continue
            try:
                return roles.login(self.accounts, role, username, password)
            except AuthenticationError as e:
                click.echo(e.message)

    def register_customer(self):
        while True:
            username = ask("Benutzername (leer = zurück)")
            if not username:
                return None
            if self.accounts.customer_exists(username):
                click.echo("Konto existiert bereits. Bitte anderen Benutzernamen wählen.")
                continue
            password = ask("Passwort")
            try:
                session = roles.register_customer(self.accounts, username, password)
            except ReservationError as e:
                click.echo(f"Fehler: {e.message}")
                continue
            click.echo("Kundenkonto angelegt.")
            return session

    def menu(self, session):
        actions = roles.ROLE_ACTIONS[session.role]
        while True:
            click.echo(f"\n[{session.role.label}-Menü - {session.username}]")
            for number, action in enumerate(actions, start=1):
                click.echo(f"{number}. {action.value}")
            click.echo(f"{len(actions) + 1}. Abmelden")
            choice = ask_number("Auswahl", 1, len(actions) + 1)
            if choice == len(actions) + 1:
                if confirm("Abmelden?"):
                    return
                continue
            self.handlers[actions[choice - 1]](session)

    # --- Anzeigen ---

    def show_reservations(self, session):
        reservations = roles.view_reservations(self.store, session)
        click.echo("\n--- Reservierungen ---")
        if not reservations:
            click.echo("Keine Reservierungen vorhanden.")
            return
        click.echo(RESERVATION_HEADER)
        for res in reservations:
            click.echo(format_reservation(res))

    def show_tables(self, session):
        for index, free in enumerate(roles.view_tables(self.store, session)):
            click.echo(f"{table_display_name(index)}: {STATUS_FREE if free else STATUS_BOOKED}")

    def show_logs(self, session):
        content = roles.view_logs(session, self.log_path)
        click.echo("--- Systemprotokoll ---\n")
        click.echo(content if content is not None else "Protokolldatei nicht vorhanden.")

    # --- Eingaben mit Wiederholung ---

    def _ask_field(self, session, action, text, is_valid, error, keep_allowed=False):
        while True:
            value = ask(text)
            if keep_allowed and value == validation.KEEP_CURRENT:
                return value
            if is_valid(value):
                return value
            click.echo(f"Fehler: {error}")
            activity_log.log_error(session, action, error)

    def _ask_party_size(self, session, action, keep_allowed=False):
        hint = ", 0 = unverändert" if keep_allowed else ""
        while True:
            raw = ask(f"Personenzahl (mindestens 1{hint})")
            if keep_allowed and raw == validation.KEEP_CURRENT:
                return 0
            value = validation.parse_numeric_input(raw, 1, sys.maxsize)
            if value is not None:
                return value
            error = "Ungültige Personenzahl. Eine einzelne Zahl >= 1 eingeben."
            click.echo(f"Fehler: {error}")
            activity_log.log_error(session, action, error)

    # --- Reservierungsaktionen ---

    def reserve(self, session):
        action = "Tischreservierung fehlgeschlagen"
        now = self.store.now()
        today = now.strftime('%Y-%m-%d')
        phone = self._ask_field(session, action, "Telefonnummer (z.B. 123-456-7890)",
                                validation.is_valid_phone, "Ungültige Telefonnummer. Format: XXX-XXX-XXXX.")
        party_size = self._ask_party_size(session, action)
        date_str = self._ask_field(session, action, f"Datum (JJJJ-MM-TT, ab {today})",
                                   lambda d: validation.is_valid_date(d, today),
                                   "Ungültiges Datum oder Datum liegt in der Vergangenheit.")
        time_str = self._ask_field(session, action, f"Uhrzeit (HH:MM, heute nach {now.strftime('%H:%M')})",
                                   lambda t: validation.is_valid_time(t, date_str, now),
                                   "Ungültige Uhrzeit oder Uhrzeit liegt in der Vergangenheit.")
        table_count = len(self.store.table_availability())
        while True:
            click.echo("Verfügbare Tische:")
            self.show_tables(session)
            table_number = ask_number(f"Tischnummer (1-{table_count}, 0 = abbrechen)", 0, table_count)
            if table_number == 0:
                click.echo("Reservierung abgebrochen.")
                return
            try:
                reservation_id = roles.reserve_table(self.store, session, phone, party_size, date_str, time_str,
                                                     table_number - 1)
            except Conflict as e:
                click.echo(f"Fehler: {e.message} Bitte anderen Tisch wählen.")
                continue
            except ReservationError as e:
                click.echo(f"Fehler: {e.message}\nReservierung fehlgeschlagen. Zurück zum Menü.")
                return
            click.echo(f"{table_display_name(table_number - 1)} erfolgreich reserviert! Reservierungs-ID: {reservation_id}")
            return

    def _ask_existing_id(self, session, action, text):
        owner = session.username if session.role is Role.CUSTOMER else None
        while True:
            reservation_id = validation.normalize_reservation_id(ask(f"{text} (z.B. ID 1A, leer = zurück)"))
            if not reservation_id:
                return None
            res = self.store.get(reservation_id)
            if not validation.is_valid_reservation_id(reservation_id):
                error = "Ungültiges Reservierungs-ID-Format. Erwartet 'ID <Zahl>A', z.B. ID 1A."
            elif res is None or (owner is not None and res.name != owner):
                error = "Reservierungs-ID nicht gefunden."
            else:
                click.echo(RESERVATION_HEADER)
                click.echo(format_reservation(res))
                return res
            click.echo(f"Fehler: {error}")
            activity_log.log_error(session, action, error, reservation_id=reservation_id)

    def _has_reservations(self, session):
        if session.role is Role.CUSTOMER:
            return self.store.has_reservations(session.username)
        return bool(self.store.list_all())

    def update(self, session):
        action = "Reservierung ändern fehlgeschlagen"
        if not self._has_reservations(session):
            click.echo("Keine Reservierungen.")
            return
        res = self._ask_existing_id(session, action, "Zu ändernde Reservierungs-ID")
        if res is None:
            return
        now = self.store.now()
        today = now.strftime('%Y-%m-%d')
        keep = validation.KEEP_CURRENT

        new_id = keep
        if session.role is Role.ADMIN:
            new_id = self._ask_field(
                session, action, "Neue ID (z.B. ID 2A, 0 = unverändert)",
                lambda i: validation.is_valid_reservation_id(i)
                and not self.store.reservation_id_exists(i, exclude_id=res.id),
                "Ungültige oder bereits vergebene Reservierungs-ID.", keep_allowed=True).upper()
        new_name = self._ask_field(session, action, "Neuer Name (0 = unverändert)",
                                   validation.is_valid_customer_name, "Ungültiger Name.", keep_allowed=True)
        new_phone = self._ask_field(session, action, "Neue Telefonnummer (z.B. 123-456-7890, 0 = unverändert)",
                                    validation.is_valid_phone, "Ungültige Telefonnummer. Format: XXX-XXX-XXXX.",
                                    keep_allowed=True)
        new_party_size = self._ask_party_size(session, action, keep_allowed=True)
        new_date = self._ask_field(session, action, f"Neues Datum (JJJJ-MM-TT, ab {today}, 0 = unverändert)",
                                   lambda d: validation.is_valid_date(d, today),
                                   "Ungültiges Datum oder Datum liegt in der Vergangenheit.", keep_allowed=True)
        effective_date = res.date if new_date == keep else new_date
        new_time = self._ask_field(session, action, "Neue Uhrzeit (HH:MM, 0 = unverändert)",
                                   lambda t: validation.is_valid_time(t, effective_date, now),
                                   "Ungültige Uhrzeit oder Uhrzeit liegt in der Vergangenheit.", keep_allowed=True)
        table_count = len(self.store.table_availability())
        click.echo(f"Tischoptionen: 0 = unverändert, oder Tischnummer (1-{table_count}):")
        self.show_tables(session)
        table_choice = ask_number("Auswahl", 0, table_count)

        if not confirm("Änderung bestätigen?"):
            click.echo("Änderung abgebrochen.")
            return
        try:
            roles.update_reservation(
                self.store, session, res.id,
                new_id=new_id, new_name=new_name, new_phone=new_phone, new_party_size=new_party_size,
                new_date=new_date, new_time=new_time,
                new_table_index=table_choice - 1 if table_choice else None,
            )
        except ReservationError as e:
            click.echo(f"Fehler: {e.message}\nÄnderung fehlgeschlagen. Zurück zum Menü.")
            return
        click.echo("Reservierung erfolgreich geändert.")

    def cancel(self, session):
        action = "Stornierung fehlgeschlagen"
        if not self._has_reservations(session):
            click.echo("Keine Reservierungen.")
            return
        res = self._ask_existing_id(session, action, "Zu stornierende Reservierungs-ID")
        if res is None:
            return
        if not confirm("Stornierung bestätigen?"):
            click.echo("Stornierung abgebrochen.")
            return
        try:
            roles.cancel_reservation(self.store, session, res.id)
        except ReservationError as e:
            click.echo(f"Fehler: {e.message}")
            return
        click.echo("Reservierung storniert.")

    def create_receptionist(self, session):
        while True:
            username = ask("Neuer Rezeptionisten-Benutzername (leer = zurück)")
            if not username:
                return
            if self.accounts.receptionist_exists(username):
                click.echo("Benutzername existiert bereits. Bitte anderen wählen.")
                continue
            password = ask("Passwort")
            try:
                roles.create_receptionist(self.accounts, session, username, password)
            except ReservationError as e:
                click.echo(f"Fehler: {e.message}")
                continue
            click.echo("Rezeptionistenkonto angelegt.")
            return


@click.command()
@click.option('--data-dir', default=config.DATA_DIR, show_default=True,
              help="Verzeichnis für Reservierungen, Konten und Protokoll.")
def main(data_dir):
    """Tischreservierung im Textmenü."""
    os.makedirs(data_dir, exist_ok=True)
    # Technisches Log in eine Datei, damit es das Menü nicht überlagert
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT,
                        filename=os.path.join(data_dir, 'tischreservierung.log'))
    log_path = os.path.join(data_dir, config.ACTIVITY_LOG_FILE_NAME)
    activity_log.configure_activity_log(log_path)
    Console(ReservationStore(data_dir), AccountBook(data_dir), log_path).run()


if __name__ == '__main__':
    main()
