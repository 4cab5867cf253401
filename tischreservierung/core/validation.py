import re

from .errors import ValidationError

PHONE_PATTERN = re.compile(r'[0-9]{3}-[0-9]{3}-[0-9]{4}')
DATE_PATTERN = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')
TIME_PATTERN = re.compile(r'[0-9]{2}:[0-9]{2}')
RESERVATION_ID_PATTERN = re.compile(r'ID ([0-9]+)A')
CREDENTIAL_PATTERN = re.compile(r'[A-Za-z0-9]+')

# Eingabekonvention "0" = Feld unverändert lassen
KEEP_CURRENT = '0'


def normalize_reservation_id(reservation_id):
    if not isinstance(reservation_id, str):
        return ''
    return reservation_id.strip().upper()


def format_reservation_id(number):
    return f"ID {number}A"


def reservation_id_number(reservation_id):
    """Zahl aus "ID <n>A" oder None, wenn das Format nicht passt."""
    match = RESERVATION_ID_PATTERN.fullmatch(normalize_reservation_id(reservation_id))
    if not match:
        return None
    return int(match.group(1))


def is_valid_reservation_id(reservation_id):
    return reservation_id_number(reservation_id) is not None


def is_valid_phone(phone):
    return isinstance(phone, str) and bool(PHONE_PATTERN.fullmatch(phone))


def is_valid_party_size(size):
    return isinstance(size, int) and not isinstance(size, bool) and size >= 1


def is_valid_customer_name(name):
    if not isinstance(name, str) or not name.strip():
        return False
    return '|' not in name and '\n' not in name and '\r' not in name


def is_valid_date(date_str, today_str):
    if not isinstance(date_str, str) or not DATE_PATTERN.fullmatch(date_str):
        return False
    _, month, day = (int(part) for part in date_str.split('-'))
    if month < 1 or month > 12 or day < 1 or day > 31:
        return False
    return date_str >= today_str


def is_valid_time(time_str, date_str, now):
    if not isinstance(time_str, str) or not TIME_PATTERN.fullmatch(time_str):
        return False
    hour, minute = (int(part) for part in time_str.split(':'))
    if hour > 23 or minute > 59:
        return False
    if date_str == now.strftime('%Y-%m-%d'):
        return time_str > now.strftime('%H:%M')
    return True


def is_valid_credential(value):
    return isinstance(value, str) and bool(CREDENTIAL_PATTERN.fullmatch(value))


def parse_numeric_input(raw, min_value, max_value):
    """Menüeingabe als Zahl; nur reine Ziffern im Bereich, sonst None."""
    raw = (raw or '').strip()
    if not raw.isdigit() or not raw.isascii():
        return None
    value = int(raw)
    if value < min_value or value > max_value:
        return None
    return value


def is_keep_current(value):
    return value is None or value == KEEP_CURRENT or value == 0


# Prüffunktionen, die ValidationError mit Feldnamen werfen

def check_reservation_id(reservation_id, field='reservation_id'):
    normalized = normalize_reservation_id(reservation_id)
    if not is_valid_reservation_id(normalized):
        raise ValidationError(field, "Ungültiges Reservierungs-ID-Format. Erwartet 'ID <Zahl>A', z.B. ID 1A.")
    return normalized


def check_customer_name(name):
    if not is_valid_customer_name(name):
        raise ValidationError('customer', "Name darf nicht leer sein und kein '|' enthalten.")
    return name.strip()


def check_phone(phone):
    if not is_valid_phone(phone):
        raise ValidationError('phone', "Ungültige Telefonnummer. Format: XXX-XXX-XXXX.")
    return phone


def check_party_size(size):
    if not is_valid_party_size(size):
        raise ValidationError('party_size', "Personenzahl muss mindestens 1 sein.")
    return size


def check_date(date_str, now):
    if not is_valid_date(date_str, now.strftime('%Y-%m-%d')):
        raise ValidationError('date', "Ungültiges Datum (JJJJ-MM-TT) oder Datum liegt in der Vergangenheit.")
    return date_str


def check_time(time_str, date_str, now):
    if not is_valid_time(time_str, date_str, now):
        raise ValidationError('time', "Ungültige Uhrzeit (HH:MM) oder Uhrzeit liegt heute bereits in der Vergangenheit.")
    return time_str


def check_table_index(table_index, table_count):
    if not isinstance(table_index, int) or isinstance(table_index, bool) or not 0 <= table_index < table_count:
        raise ValidationError('table_index', f"Ungültige Tischnummer. Erlaubt ist 1 bis {table_count}.")
    return table_index
