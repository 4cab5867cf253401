import logging
import os

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from . import config, roles
from .core.accounts import AccountBook
from .core.activity_log import configure_activity_log
from .core.errors import AuthenticationError, ReservationError, ValidationError
from .core.manager import ReservationStore
from .core.models import STATUS_BOOKED, STATUS_FREE, table_display_name
from .roles import Role, Session


def create_app(store=None, accounts=None, data_dir=None, activity_log_path=None):
    data_dir = data_dir or config.DATA_DIR
    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    app.config['STORE'] = store or ReservationStore(data_dir)
    app.config['ACCOUNTS'] = accounts or AccountBook(data_dir)
    app.config['ACTIVITY_LOG'] = activity_log_path or os.path.join(data_dir, config.ACTIVITY_LOG_FILE_NAME)
    configure_activity_log(app.config['ACTIVITY_LOG'])

    def current_session():
        return Session(Role(session['role']), session['username'])

    def json_body():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError('body', "JSON-Objekt im Request erwartet.")
        return data

    def int_field(data, key, default=None):
        value = data.get(key, default)
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(key, f"'{key}' muss eine ganze Zahl sein.")

    @app.errorhandler(ReservationError)
    def handle_reservation_error(error):
        payload = {"success": False, "message": error.message}
        if isinstance(error, ValidationError):
            payload["field"] = error.field
        return jsonify(payload), error.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        if isinstance(error, HTTPException):
            return error
        app.logger.error(f"Unerwarteter Fehler: {error}", exc_info=True)
        return jsonify({"success": False, "message": f"Serverfehler: {error}"}), 500

    @app.before_request
    def require_login():
        # Endpunkte, die ohne Login erreichbar sind
        allowed_routes = ['login', 'logout', 'register_customer', 'static']
        if 'role' not in session and request.endpoint not in allowed_routes:
            return jsonify({"success": False, "message": "Nicht angemeldet."}), 401

    @app.route('/login', methods=['POST'])
    def login():
        data = json_body()
        try:
            role = Role(data.get('role', ''))
        except (TypeError, ValueError):
            raise ValidationError('role', "Unbekannte Rolle.")
        try:
            user_session = roles.login(app.config['ACCOUNTS'], role, data.get('username'), data.get('password'))
        except AuthenticationError:
            app.logger.warning(f"Fehlgeschlagener Login-Versuch für User: {data.get('username')}")
            raise
        session['role'] = user_session.role.value
        session['username'] = user_session.username
        app.logger.info(f"Benutzer '{user_session.username}' hat sich als {role.label} angemeldet.")
        return jsonify({"success": True, "role": role.value, "username": user_session.username})

    @app.route('/logout', methods=['POST'])
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route('/api/kunden', methods=['POST'])
    def register_customer():
        data = json_body()
        user_session = roles.register_customer(app.config['ACCOUNTS'], data.get('username'), data.get('password'))
        session['role'] = user_session.role.value
        session['username'] = user_session.username
        return jsonify({"success": True, "message": "Kundenkonto angelegt.", "username": user_session.username}), 201

    @app.route('/api/tische', methods=['GET'])
    def api_tables():
        availability = roles.view_tables(app.config['STORE'], current_session())
        return jsonify({"success": True, "tables": [
            {
                "table_index": i,
                "display_name": table_display_name(i),
                "available": free,
                "status": STATUS_FREE if free else STATUS_BOOKED,
            }
            for i, free in enumerate(availability)
        ]})

    @app.route('/api/reservierungen', methods=['GET'])
    def api_reservations():
        reservations = roles.view_reservations(app.config['STORE'], current_session())
        return jsonify({"success": True, "reservations": [r.to_dict() for r in reservations]})

    @app.route('/api/neue_reservierung', methods=['POST'])
    def api_create_reservation():
        data = json_body()
        reservation_id = roles.reserve_table(
            app.config['STORE'], current_session(),
            phone=data.get('phone'),
            party_size=int_field(data, 'party_size'),
            date_str=data.get('date'),
            time_str=data.get('time'),
            table_index=int_field(data, 'table_index'),
        )
        return jsonify({"success": True, "message": "Tisch reserviert!", "reservation_id": reservation_id}), 201

    @app.route('/api/reservierung_bearbeiten/<string:reservation_id>', methods=['POST'])
    def api_update_reservation(reservation_id):
        data = json_body()
        updated = roles.update_reservation(
            app.config['STORE'], current_session(), reservation_id,
            new_id=data.get('new_id'),
            new_name=data.get('name'),
            new_phone=data.get('phone'),
            new_party_size=int_field(data, 'party_size'),
            new_date=data.get('date'),
            new_time=data.get('time'),
            new_table_index=int_field(data, 'table_index'),
        )
        return jsonify({"success": True, "message": "Aktualisiert.", "reservation": updated.to_dict()})

    @app.route('/api/reservierung_loeschen/<string:reservation_id>', methods=['DELETE'])
    def api_delete_reservation(reservation_id):
        cancelled = roles.cancel_reservation(app.config['STORE'], current_session(), reservation_id)
        return jsonify({"success": True, "message": "Reservierung erfolgreich storniert.", "reservation_id": cancelled.id})

    @app.route('/api/logs', methods=['GET'])
    def api_logs():
        content = roles.view_logs(current_session(), app.config['ACTIVITY_LOG'])
        return jsonify({"success": True, "log": content or ""})

    @app.route('/api/rezeptionisten', methods=['POST'])
    def api_create_receptionist():
        data = json_body()
        roles.create_receptionist(app.config['ACCOUNTS'], current_session(), data.get('username'), data.get('password'))
        return jsonify({"success": True, "message": "Rezeptionistenkonto angelegt."}), 201

    return app


if __name__ == '__main__':
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    create_app().run(debug=False, host=config.HOST, port=config.PORT)
