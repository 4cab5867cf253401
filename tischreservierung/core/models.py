from ..config import TABLE_COUNT

FIELD_SEPARATOR = '|'
STATUS_FREE = "FREI"
STATUS_BOOKED = "BELEGT"


def table_display_name(table_index):
    return f"Tisch {table_index + 1}"


class TableBoard:
    """Feste Anzahl Tischplätze, True = frei."""

    def __init__(self, size=TABLE_COUNT):
        self._slots = [True] * size

    def __len__(self):
        return len(self._slots)

    def is_available(self, table_index):
        return self._slots[table_index]

    def book(self, table_index):
        self._slots[table_index] = False

    def release(self, table_index):
        self._slots[table_index] = True

    def snapshot(self):
        return list(self._slots)

    def __repr__(self):
        booked = [i + 1 for i, free in enumerate(self._slots) if not free]
        return f"<TableBoard {len(self._slots)} Tische, belegt: {booked}>"


class Reservation:
    def __init__(self, reservation_id, name, phone, party_size, date_str, time_str, table_index):
        self.id = reservation_id.upper()
        self.name = name
        self.phone = phone
        self.party_size = int(party_size)
        self.date = date_str
        self.time = time_str
        self.table_index = int(table_index)

    def __repr__(self):
        return f"<Reservation {self.id} '{self.name}' {self.date} {self.time} {table_display_name(self.table_index)}>"

    def __eq__(self, other):
        if not isinstance(other, Reservation):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @classmethod
    def from_line(cls, line):
        parts = line.rstrip('\r\n').split(FIELD_SEPARATOR)
        if len(parts) != 7:
            raise ValueError(f"Erwartet 7 Felder, gefunden {len(parts)}")
        reservation_id, name, phone, party_size, date_str, time_str, table_index = parts
        return cls(reservation_id, name, phone, int(party_size), date_str, time_str, int(table_index))

    def to_line(self):
        return FIELD_SEPARATOR.join([
            self.id, self.name, self.phone, str(self.party_size),
            self.date, self.time, str(self.table_index)
        ])

    @classmethod
    def from_dict(cls, data):
        return cls(
            reservation_id=data.get('id'),
            name=data.get('name'),
            phone=data.get('phone'),
            party_size=data.get('party_size'),
            date_str=data.get('date'),
            time_str=data.get('time'),
            table_index=data.get('table_index')
        )

    def to_dict(self):
        return {
            "id": self.id, "name": self.name, "phone": self.phone,
            "party_size": self.party_size, "date": self.date, "time": self.time,
            "table_index": self.table_index,
        }

    def copy(self):
        return Reservation.from_dict(self.to_dict())
