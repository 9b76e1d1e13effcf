"""
HTTP API for Roll Enhancements.

JSON endpoints over one RollEngine:
- POST /api/items: import an item document
- GET  /api/items: list items
- POST /api/items/<id>/roll: use an item (auto rolls follow)
- POST /api/items/<id>/damage: roll damage for a formula group
- GET  /api/messages: latest chat messages
- GET/PUT /api/settings/<key>: read or change a setting

Responses are ``Result.to_dict()`` payloads. The damage dialog is answered
from the request body (``dialog``) since there is nobody to ask.
"""

import logging
import threading
from typing import Optional

from flask import Flask, jsonify, request

from roll_enhancements.core.config import get_config
from roll_enhancements.core.engine import RollEngine
from roll_enhancements.core.errors import InvalidInputError, RollEnhancementError
from roll_enhancements.core.result import ErrorCode, Result
from roll_enhancements.modules.damage import StaticDamageDialog
from roll_enhancements.modules.dice import DiceNotationError
from roll_enhancements.modules.items import RollEvent

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ErrorCode.ITEM_NOT_FOUND.value: 404,
    ErrorCode.UNEXPECTED_ERROR.value: 500,
    ErrorCode.STORAGE_ERROR.value: 500,
}


def respond(result: Result):
    """JSON response for a Result, with a status code matching its error."""
    if result.success:
        return jsonify(result.to_dict()), 200
    return jsonify(result.to_dict()), STATUS_CODES.get(result.error_code, 400)


def event_from_body(body) -> RollEvent:
    """
    Build the triggering event from ``modifiers`` (key names such as
    'shiftKey') and the optional ``client_x``/``client_y`` pointer position.

    Raises:
        InvalidInputError: If a modifier name is unknown
    """
    modifiers = body.get('modifiers') or []
    if not isinstance(modifiers, list):
        raise InvalidInputError("'modifiers' must be a list of key names")
    try:
        return RollEvent.from_keys(
            modifiers,
            client_x=body.get('client_x'),
            client_y=body.get('client_y')
        )
    except ValueError as e:
        raise InvalidInputError(str(e)) from e


def spell_level_from_body(body) -> Optional[int]:
    """
    ``spell_level`` as a whole number, or None when absent.

    Raises:
        InvalidInputError: If it is not a whole number
    """
    value = body.get('spell_level')
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not float(value).is_integer():
        raise InvalidInputError(f"'spell_level' must be a whole number, got {value!r}")
    return int(value)


def dialog_from_body(body):
    answer = body.get('dialog')
    if answer is None:
        return None
    return StaticDamageDialog(
        critical=bool(answer.get('critical', False)),
        bonus=answer.get('bonus'),
        roll_mode=answer.get('roll_mode'),
        cancel=bool(answer.get('cancel', False))
    )


def create_app(engine: RollEngine = None, db_path: str = None) -> Flask:
    """
    Create the Flask app.

    Args:
        engine: Engine to serve (default: a new engine on ``db_path``)
        db_path: Database path when no engine is given

    Returns:
        Flask app
    """
    app = Flask(__name__)
    app.engine = engine or RollEngine(db_path)

    # Rolls mutate engine state (dialog, dice, item flags): one at a time
    roll_lock = threading.Lock()

    def run_roll(body, action):
        with roll_lock:
            app.engine.dialog = dialog_from_body(body)
            try:
                return action()
            finally:
                app.engine.dialog = None

    @app.errorhandler(RollEnhancementError)
    def handle_roll_error(e):
        return respond(e.to_result())

    @app.errorhandler(DiceNotationError)
    def handle_notation_error(e):
        return respond(Result.fail(str(e), ErrorCode.INVALID_DICE_NOTATION))

    # ========== Items ==========

    @app.route('/api/items', methods=['POST'])
    def api_import_item():
        """JSON API: Import an item document."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return respond(Result.fail("Request body must be a JSON object", ErrorCode.INVALID_INPUT))
        return respond(app.engine.add_item(body))

    @app.route('/api/items')
    def api_items():
        """JSON API: List items."""
        return respond(Result.ok([item.to_dict() for item in app.engine.list_items()]))

    @app.route('/api/items/<item_id>/roll', methods=['POST'])
    def api_roll_item(item_id: str):
        """JSON API: Use an item and run its automatic rolls."""
        body = request.get_json(silent=True) or {}
        item = app.engine.get_item(item_id)
        before = app.engine.messages.count()

        card = run_roll(body, lambda: app.engine.items.roll(
            item,
            event=event_from_body(body),
            spell_level=spell_level_from_body(body)
        ))
        if card is None:
            return respond(Result.fail("Item use cancelled", ErrorCode.CANCELLED))

        created = app.engine.messages.count() - before
        messages = app.engine.messages.list(created) if created else []
        return respond(Result.ok({
            'card': card,
            'messages': [message.to_dict() for message in messages]
        }))

    @app.route('/api/items/<item_id>/damage', methods=['POST'])
    def api_roll_damage(item_id: str):
        """JSON API: Roll damage for one formula group."""
        body = request.get_json(silent=True) or {}
        item = app.engine.get_item(item_id)

        parts = run_roll(body, lambda: app.engine.items.roll_damage(
            item,
            formula_group=body.get('formula_group', 0),
            critical=bool(body.get('critical', False)),
            versatile=bool(body.get('versatile', False)),
            spell_level=spell_level_from_body(body),
            event=event_from_body(body),
            options=body.get('options') or {}
        ))
        if parts is None:
            return respond(Result.fail("Damage roll cancelled", ErrorCode.CANCELLED))

        return respond(Result.ok({
            'parts': [part.to_dict() for part in parts],
            'total': sum(part.roll.total for part in parts)
        }))

    # ========== Chat log ==========

    @app.route('/api/messages')
    def api_messages():
        """JSON API: Latest chat messages, oldest first."""
        limit = request.args.get('limit', 50, type=int)
        return respond(Result.ok([message.to_dict() for message in app.engine.messages.list(limit)]))

    # ========== Settings ==========

    @app.route('/api/settings')
    def api_settings():
        return respond(Result.ok(app.engine.settings.all()))

    @app.route('/api/settings/<key>', methods=['GET', 'PUT'])
    def api_setting(key: str):
        """JSON API: Read or change one setting (PUT body: {"value": ...})."""
        try:
            if request.method == 'PUT':
                body = request.get_json(silent=True)
                if not isinstance(body, dict) or 'value' not in body:
                    return respond(Result.fail("Body must contain 'value'", ErrorCode.MISSING_REQUIRED_FIELD))
                app.engine.settings.set(key, body['value'])
            return respond(Result.ok({'key': key, 'value': app.engine.settings.get(key)}))
        except KeyError:
            return respond(Result.fail(f"Unknown setting '{key}'", ErrorCode.INVALID_INPUT))

    return app


def main():
    """Run development server."""
    import argparse

    from roll_enhancements.core.logging_config import setup_logging

    config = get_config()

    parser = argparse.ArgumentParser(description='Roll Enhancements HTTP API')
    parser.add_argument('--db', default=config.db_path, help='Database path')
    parser.add_argument('--host', default=config.host, help='Host to bind to')
    parser.add_argument('--port', type=int, default=config.port, help='Port to bind to')
    parser.add_argument('--debug', action='store_true', default=config.debug, help='Enable debug mode')

    args = parser.parse_args()
    setup_logging(level=config.log_level, log_file=config.log_file)

    app = create_app(db_path=args.db)

    print(f"")
    print(f"  Roll Enhancements API")
    print(f"  Database:   {args.db}")
    print(f"  Server URL: http://{args.host}:{args.port}/api/items")
    print(f"")

    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
