import glob
import logging
import os
import shutil
import tempfile
from datetime import datetime

from ..config import (
    BACKUP_DIR_NAME,
    DATA_DIR,
    MAX_BACKUPS_TO_KEEP,
    NEXT_ID_FILE_NAME,
    RESERVATIONS_FILE_NAME,
    TABLE_COUNT,
    reference_now,
)
from .errors import Conflict, NotFound
from .models import Reservation, TableBoard, table_display_name
from .validation import (
    check_customer_name,
    check_date,
    check_party_size,
    check_phone,
    check_reservation_id,
    check_table_index,
    check_time,
    format_reservation_id,
    is_keep_current,
    normalize_reservation_id,
    reservation_id_number,
)

logger = logging.getLogger(__name__)


class ReservationStore:
    """Reservierungen und Tischbelegung, nach jeder Änderung komplett auf Platte geschrieben."""

    def __init__(self, data_dir=DATA_DIR, table_count=TABLE_COUNT, now=None, max_backups=MAX_BACKUPS_TO_KEEP):
        self.data_dir = data_dir
        self.data_file = os.path.join(data_dir, RESERVATIONS_FILE_NAME)
        self.next_id_file = os.path.join(data_dir, NEXT_ID_FILE_NAME)
        self.backup_dir = os.path.join(data_dir, BACKUP_DIR_NAME)
        self.table_count = table_count
        self.max_backups = max_backups
        self._now = now or reference_now
        self.tables = TableBoard(table_count)
        self.reservations = []
        self.next_reservation_id = 1
        self.load()

    # --- Persistenz ---

    def load(self):
        self.tables = TableBoard(self.table_count)
        self.reservations = []
        self.next_reservation_id = 1
        os.makedirs(self.data_dir, exist_ok=True)

        if not os.path.exists(self.data_file):
            logger.info(f"Reservierungsdatei {self.data_file} nicht gefunden. Starte mit leerer Liste.")
        else:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                for line_no, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        res = Reservation.from_line(line)
                    except ValueError as ve:
                        logger.error(f"Zeile {line_no} in {self.data_file} unlesbar: {ve} - Daten: {line.rstrip()}")
                        continue
                    if not 0 <= res.table_index < self.table_count:
                        logger.error(f"Reservierung {res.id} verweist auf ungültigen Tisch {res.table_index}. Überspringe.")
                        continue
                    if not self.tables.is_available(res.table_index):
                        logger.error(
                            f"{table_display_name(res.table_index)} ist doppelt vergeben, Reservierung {res.id} wird übersprungen.")
                        continue
                    if self.reservation_id_exists(res.id):
                        logger.error(f"Reservierungs-ID {res.id} ist doppelt vorhanden. Überspringe.")
                        continue
                    self.tables.book(res.table_index)
                    self.reservations.append(res)
                    number = reservation_id_number(res.id)
                    if number is not None:
                        self.next_reservation_id = max(self.next_reservation_id, number + 1)
            logger.info(f"{len(self.reservations)} Reservierungen aus {self.data_file} geladen.")

        if os.path.exists(self.next_id_file):
            with open(self.next_id_file, 'r', encoding='utf-8') as f:
                content = f.read().strip()
            try:
                self.next_reservation_id = max(self.next_reservation_id, int(content))
            except ValueError:
                logger.warning(f"Zählerdatei {self.next_id_file} enthält keine Zahl: '{content}'. Ignoriere.")
        return list(self.reservations)

    def save(self):
        self._backup_data_file()
        content = ''.join(res.to_line() + '\n' for res in self.reservations)
        self._write_atomically(self.data_file, content)
        self._write_atomically(self.next_id_file, f"{self.next_reservation_id}\n")

    def _write_atomically(self, path, content):
        temp_fd, temp_path = tempfile.mkstemp(dir=self.data_dir, prefix='res_temp_', suffix='.txt')
        try:
            with os.fdopen(temp_fd, 'w', encoding='utf-8') as tmp:
                tmp.write(content)
            os.replace(temp_path, path)
        except OSError as e:
            logger.error(f"FEHLER beim Speichern von {path}: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    def _backup_data_file(self):
        if not os.path.exists(self.data_file):
            return
        try:
            os.makedirs(self.backup_dir, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
            backup_path = os.path.join(self.backup_dir, f"reservations_backup_{timestamp}.txt")
            shutil.copy2(self.data_file, backup_path)
        except OSError as e:
            logger.error(f"Fehler beim Erstellen des Backups von {self.data_file}: {e}")
            return
        self._cleanup_old_backups()

    def _cleanup_old_backups(self):
        backup_files = glob.glob(os.path.join(self.backup_dir, "reservations_backup_*.txt"))
        # Zeitstempel im Namen sortiert lexikografisch chronologisch
        backup_files.sort()
        for f_del in backup_files[:len(backup_files) - self.max_backups]:
            try:
                os.remove(f_del)
            except OSError as e:
                logger.error(f"Fehler beim Löschen der alten Backup-Datei {f_del}: {e}")

    # --- Abfragen ---

    def now(self):
        return self._now()

    def _find(self, reservation_id, customer_filter=None):
        for res in self.reservations:
            if res.id == reservation_id and (customer_filter is None or res.name == customer_filter):
                return res
        return None

    def get(self, reservation_id):
        res = self._find(normalize_reservation_id(reservation_id))
        return res.copy() if res else None

    def reservation_id_exists(self, reservation_id, exclude_id=None):
        upper_id = normalize_reservation_id(reservation_id)
        upper_exclude = normalize_reservation_id(exclude_id)
        return any(res.id == upper_id and res.id != upper_exclude for res in self.reservations)

    def has_reservations(self, customer_name):
        return any(res.name == customer_name for res in self.reservations)

    def list_by_customer(self, customer_name):
        return [res.copy() for res in self.reservations if res.name == customer_name]

    def list_all(self):
        return [res.copy() for res in self.reservations]

    def table_availability(self):
        return self.tables.snapshot()

    # --- Änderungen ---

    def reserve(self, customer, phone, party_size, date_str, time_str, table_index):
        now = self._now()
        customer = check_customer_name(customer)
        check_phone(phone)
        check_party_size(party_size)
        check_date(date_str, now)
        check_time(time_str, date_str, now)
        check_table_index(table_index, self.table_count)
        if not self.tables.is_available(table_index):
            raise Conflict(f"{table_display_name(table_index)} ist bereits belegt.")

        number = self.next_reservation_id
        while self.reservation_id_exists(format_reservation_id(number)):
            number += 1
        reservation_id = format_reservation_id(number)
        self.next_reservation_id = number + 1

        self.tables.book(table_index)
        self.reservations.append(
            Reservation(reservation_id, customer, phone, party_size, date_str, time_str, table_index))
        self.save()
        logger.info(f"Reservierung {reservation_id} für '{customer}' an {table_display_name(table_index)} angelegt.")
        return reservation_id

    def update(self, reservation_id, customer_filter=None, new_id=None, new_name=None, new_phone=None,
               new_party_size=None, new_date=None, new_time=None, new_table_index=None):
        upper_id = check_reservation_id(reservation_id)
        res = self._find(upper_id, customer_filter)
        if res is None:
            raise NotFound(f"Keine Reservierung {upper_id} zum Aktualisieren gefunden.")
        now = self._now()

        if not is_keep_current(new_id):
            new_id = check_reservation_id(new_id, field='new_id')
            if self.reservation_id_exists(new_id, exclude_id=upper_id):
                raise Conflict(f"Reservierungs-ID {new_id} ist bereits vergeben.")
        else:
            new_id = None
        new_name = None if is_keep_current(new_name) else check_customer_name(new_name)
        new_phone = None if is_keep_current(new_phone) else check_phone(new_phone)
        new_party_size = None if is_keep_current(new_party_size) else check_party_size(new_party_size)
        new_date = None if is_keep_current(new_date) else check_date(new_date, now)
        new_time = None if is_keep_current(new_time) else new_time
        if new_date is not None or new_time is not None:
            check_time(new_time or res.time, new_date or res.date, now)

        if new_table_index is not None:
            check_table_index(new_table_index, self.table_count)
            if new_table_index != res.table_index and not self.tables.is_available(new_table_index):
                raise Conflict(f"{table_display_name(new_table_index)} ist bereits belegt.")
            self.tables.release(res.table_index)
            self.tables.book(new_table_index)
            res.table_index = new_table_index

        if new_id is not None:
            res.id = new_id
        if new_name is not None:
            res.name = new_name
        if new_phone is not None:
            res.phone = new_phone
        if new_party_size is not None:
            res.party_size = new_party_size
        if new_date is not None:
            res.date = new_date
        if new_time is not None:
            res.time = new_time

        self.save()
        logger.info(f"Reservierung {upper_id} aktualisiert: {res!r}")
        return res.copy()

    def cancel(self, reservation_id, customer_filter=None):
        upper_id = check_reservation_id(reservation_id)
        res = self._find(upper_id, customer_filter)
        if res is None:
            raise NotFound(f"Keine Reservierung {upper_id} zum Stornieren gefunden.")
        self.tables.release(res.table_index)
        self.reservations = [r for r in self.reservations if r.id != upper_id]
        self.save()
        logger.info(f"Reservierung {upper_id} storniert, {table_display_name(res.table_index)} wieder frei.")
        return res.copy()
