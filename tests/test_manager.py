import glob
import os

import pytest

from tischreservierung.core.errors import Conflict, NotFound, ValidationError
from tischreservierung.core.manager import ReservationStore

from .conftest import PHONE, TODAY, TOMORROW, fixed_now, read_file


def reserve(store, name="Alice", table_index=0, date_str=TOMORROW, time_str="19:00", party_size=2):
    return store.reserve(name, PHONE, party_size, date_str, time_str, table_index)


class TestReserve:

    def test_reserve_books_table_and_cancel_releases_it(self, store):
        # Given: alle Tische frei
        assert store.table_availability() == [True] * 10

        # When: heute eine Minute nach dem Bezugszeitpunkt Tisch 3 reservieren
        reservation_id = store.reserve("Alice", PHONE, 4, TODAY, "22:20", 3)

        # Then
        assert reservation_id == "ID 1A"
        assert store.table_availability()[3] is False

        store.cancel(reservation_id, None)
        assert store.table_availability()[3] is True
        assert store.list_all() == []

    def test_reserve_persists_pipe_delimited_record_and_counter(self, store):
        reserve(store, table_index=3, party_size=4)

        assert read_file(store.data_file) == f"ID 1A|Alice|{PHONE}|4|{TOMORROW}|19:00|3\n"
        assert read_file(store.next_id_file).strip() == "2"

    def test_reserve_booked_table_conflicts_without_side_effects(self, store):
        reserve(store, table_index=5)

        with pytest.raises(Conflict) as exc_info:
            reserve(store, name="Bob", table_index=5)

        assert exc_info.value.status_code == 409
        assert len(store.list_all()) == 1
        assert store.next_reservation_id == 2

    @pytest.mark.parametrize('kwargs, field', [
        (dict(customer="  "), 'customer'),
        (dict(customer="A|B"), 'customer'),
        (dict(phone="555-1234"), 'phone'),
        (dict(party_size=0), 'party_size'),
        (dict(date_str="2025-05-21"), 'date'),
        (dict(date_str="2025-02-30x"), 'date'),
        (dict(date_str=TODAY, time_str="22:19"), 'time'),
        (dict(time_str="7pm"), 'time'),
        (dict(table_index=10), 'table_index'),
        (dict(table_index=-1), 'table_index'),
        (dict(phone="١٢٣-٤٥٦-٧٨٩٠"), 'phone'),
        (dict(date_str="٢٠٢٠-٠١-٠١"), 'date'),
        (dict(phone=1234567890), 'phone'),
        (dict(customer=42), 'customer'),
    ])
    def test_reserve_rejects_invalid_field(self, store, kwargs, field):
        args = dict(customer="Alice", phone=PHONE, party_size=2, date_str=TOMORROW, time_str="19:00", table_index=0)
        args.update(kwargs)

        with pytest.raises(ValidationError) as exc_info:
            store.reserve(**args)

        assert exc_info.value.field == field
        assert store.table_availability() == [True] * 10
        assert not os.path.exists(store.data_file)

    def test_ids_are_unique_and_increasing(self, store):
        ids = [reserve(store, table_index=i) for i in range(3)]
        store.cancel(ids[-1])
        ids.append(reserve(store, table_index=7))

        assert ids == ["ID 1A", "ID 2A", "ID 3A", "ID 4A"]

    def test_allocation_skips_ids_already_in_use(self, store):
        first = reserve(store, table_index=0)
        store.update(first, new_id="ID 2A")

        assert reserve(store, table_index=1) == "ID 3A"

    def test_no_two_reservations_share_a_table(self, store):
        for i in range(10):
            reserve(store, table_index=i)
        with pytest.raises(Conflict):
            reserve(store, table_index=4)
        store.update("ID 1A", new_table_index=0)

        table_indexes = [res.table_index for res in store.list_all()]
        assert len(table_indexes) == len(set(table_indexes)) == 10
        assert not any(store.table_availability())


class TestUpdate:

    def test_update_moves_table(self, store):
        reservation_id = reserve(store, table_index=2)

        updated = store.update(reservation_id, new_table_index=6)

        assert updated.table_index == 6
        availability = store.table_availability()
        assert availability[2] is True
        assert availability[6] is False

    def test_update_to_booked_table_is_atomic(self, store):
        first = reserve(store, table_index=1)
        reserve(store, name="Bob", table_index=2)
        before = store.list_all()

        with pytest.raises(Conflict):
            store.update(first, new_name="Carol", new_table_index=2)

        assert store.list_all() == before
        assert store.table_availability()[1] is False
        assert store.table_availability()[2] is False

    def test_update_keeps_fields_given_sentinel(self, store):
        reservation_id = reserve(store, table_index=4, party_size=3)

        updated = store.update(reservation_id, "Alice", new_id="0", new_name="0", new_phone="0",
                               new_party_size=0, new_date="0", new_time="0")

        assert updated.to_dict() == {
            "id": "ID 1A", "name": "Alice", "phone": PHONE, "party_size": 3,
            "date": TOMORROW, "time": "19:00", "table_index": 4,
        }

    def test_update_replaces_fields(self, store):
        reservation_id = reserve(store, table_index=4)

        store.update(reservation_id, new_id="id 9a", new_name="Alicia", new_phone="999-888-7777",
                     new_party_size=6, new_date="2025-06-01", new_time="12:30", new_table_index=4)

        assert store.get("ID 1A") is None
        res = store.get("ID 9A")
        assert (res.name, res.phone, res.party_size, res.date, res.time, res.table_index) == \
            ("Alicia", "999-888-7777", 6, "2025-06-01", "12:30", 4)
        assert store.table_availability()[4] is False

    def test_update_unknown_id_not_found(self, store):
        with pytest.raises(NotFound) as exc_info:
            store.update("ID 42A", new_name="X")
        assert exc_info.value.status_code == 404

    def test_update_respects_customer_filter(self, store):
        reservation_id = reserve(store, name="Alice")

        with pytest.raises(NotFound):
            store.update(reservation_id, "Bob", new_party_size=5)

        assert store.get(reservation_id).party_size == 2

    def test_update_new_id_collision_conflicts(self, store):
        first = reserve(store, table_index=0)
        reserve(store, table_index=1)

        with pytest.raises(Conflict):
            store.update(first, new_id="ID 2A")

    def test_update_invalid_field_leaves_table_untouched(self, store):
        reservation_id = reserve(store, table_index=0)

        with pytest.raises(ValidationError) as exc_info:
            store.update(reservation_id, new_phone="nope", new_table_index=8)

        assert exc_info.value.field == 'phone'
        assert store.table_availability()[0] is False
        assert store.table_availability()[8] is True

    def test_update_checks_existing_time_against_new_date(self, store):
        reservation_id = reserve(store, time_str="10:00")

        with pytest.raises(ValidationError) as exc_info:
            store.update(reservation_id, new_date=TODAY)

        assert exc_info.value.field == 'time'
        store.update(reservation_id, new_date=TODAY, new_time="23:00")
        assert store.get(reservation_id).date == TODAY

    def test_update_malformed_id_is_validation_error(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.update("1A", new_name="X")
        assert exc_info.value.field == 'reservation_id'


class TestCancel:

    def test_cancel_is_case_insensitive(self, store):
        reserve(store, table_index=9)

        cancelled = store.cancel("id 1a", "Alice")

        assert cancelled.id == "ID 1A"
        assert store.table_availability()[9] is True

    def test_cancel_unknown_id_not_found(self, store):
        with pytest.raises(NotFound):
            store.cancel("ID 3A")

    def test_cancel_other_customers_reservation_not_found(self, store):
        reservation_id = reserve(store, name="Alice")

        with pytest.raises(NotFound):
            store.cancel(reservation_id, "Bob")

        assert store.has_reservations("Alice")


class TestQueries:

    def test_list_by_customer(self, store):
        reserve(store, name="Alice", table_index=0)
        reserve(store, name="Bob", table_index=1)
        reserve(store, name="Alice", table_index=2)

        assert [r.id for r in store.list_by_customer("Alice")] == ["ID 1A", "ID 3A"]
        assert len(store.list_all()) == 3
        assert not store.has_reservations("Carol")

    def test_returned_reservations_are_copies(self, store):
        reserve(store, table_index=0)

        store.list_all()[0].table_index = 5

        assert store.get("ID 1A").table_index == 0
        assert store.table_availability()[5] is True


class TestPersistence:

    def test_reload_restores_board_and_counter(self, store, data_dir):
        reserve(store, table_index=1)
        reserve(store, name="Bob", table_index=8)
        store.cancel("ID 1A")

        reloaded = ReservationStore(data_dir, now=fixed_now)

        assert [r.id for r in reloaded.list_all()] == ["ID 2A"]
        assert reloaded.table_availability()[8] is False
        assert reloaded.table_availability()[1] is True
        assert reserve(reloaded, table_index=1) == "ID 3A"

    def test_load_recovers_counter_from_highest_id(self, data_dir):
        os.makedirs(data_dir)
        with open(os.path.join(data_dir, 'reservations.txt'), 'w', encoding='utf-8') as f:
            f.write(f"ID 7A|Alice|{PHONE}|2|{TOMORROW}|19:00|0\n")
            f.write(f"ID 3A|Bob|{PHONE}|2|{TOMORROW}|19:00|1\n")

        store = ReservationStore(data_dir, now=fixed_now)

        assert store.next_reservation_id == 8
        assert reserve(store, table_index=2) == "ID 8A"

    def test_load_prefers_larger_persisted_counter(self, data_dir):
        os.makedirs(data_dir)
        with open(os.path.join(data_dir, 'next_id.txt'), 'w', encoding='utf-8') as f:
            f.write("20\n")

        store = ReservationStore(data_dir, now=fixed_now)

        assert reserve(store) == "ID 20A"

    def test_load_skips_malformed_and_conflicting_lines(self, data_dir):
        os.makedirs(data_dir)
        with open(os.path.join(data_dir, 'reservations.txt'), 'w', encoding='utf-8') as f:
            f.write(f"ID 1A|Alice|{PHONE}|2|{TOMORROW}|19:00|0\n")
            f.write("kaputt\n")
            f.write(f"ID 2A|Bob|{PHONE}|zwei|{TOMORROW}|19:00|1\n")
            f.write(f"ID 3A|Carol|{PHONE}|2|{TOMORROW}|19:00|0\n")
            f.write(f"ID 4A|Dave|{PHONE}|2|{TOMORROW}|19:00|12\n")
            f.write("\n")

        store = ReservationStore(data_dir, now=fixed_now)

        assert [r.id for r in store.list_all()] == ["ID 1A"]
        assert store.table_availability() == [False] + [True] * 9

    def test_save_rotates_backups(self, data_dir):
        store = ReservationStore(data_dir, now=fixed_now, max_backups=2)
        for i in range(5):
            reserve(store, table_index=i)

        backups = glob.glob(os.path.join(data_dir, 'backups', 'reservations_backup_*.txt'))
        assert len(backups) == 2
        assert not glob.glob(os.path.join(data_dir, 'res_temp_*'))

    def test_zero_backups_keeps_none(self, data_dir):
        store = ReservationStore(data_dir, now=fixed_now, max_backups=0)
        for i in range(3):
            reserve(store, table_index=i)

        assert glob.glob(os.path.join(data_dir, 'backups', 'reservations_backup_*.txt')) == []
