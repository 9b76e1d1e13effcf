#!/usr/bin/env python3
"""
Command-line interface for Roll Enhancements.

Provides commands for importing items, using them (with auto rolls), rolling
damage by formula group, editing settings and reading the chat log.
"""

import argparse
import json
import sys

from roll_enhancements.core.config import get_config
from roll_enhancements.core.engine import RollEngine
from roll_enhancements.core.errors import RollEnhancementError
from roll_enhancements.core.logging_config import setup_logging
from roll_enhancements.modules.damage import ConsoleDamageDialog
from roll_enhancements.modules.dice import DiceNotationError
from roll_enhancements.modules.items import RollEvent


def _engine(args) -> RollEngine:
    return RollEngine(args.db, seed=args.seed, dialog=ConsoleDamageDialog())


def _event(args) -> RollEvent:
    keys = []
    if args.shift:
        keys.append('shiftKey')
    if args.alt:
        keys.append('altKey')
    if args.ctrl:
        keys.append('ctrlKey')
    return RollEvent.from_keys(keys)


def _fail(message: str) -> None:
    print(f"✗ Error: {message}", file=sys.stderr)
    sys.exit(1)


def cmd_item_import(args):
    """Import an item document from a JSON file."""
    try:
        with open(args.file, encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Cannot read {args.file}: {e}")

    engine = _engine(args)
    try:
        result = engine.add_item(data)
        if not result.success:
            _fail(result.error)
        print(f"✓ Item imported:")
        print(f"  ID: {result.data['id']}")
        print(f"  Name: {result.data['name']}")
    finally:
        engine.close()


def cmd_item_list(args):
    """List all items."""
    engine = _engine(args)
    try:
        items = engine.list_items()
        if not items:
            print("No items found")
            return

        print(f"Found {len(items)} items:\n")
        for item in items:
            print(f"  {item.id:20} {item.name} ({item.type})")
    finally:
        engine.close()


def cmd_item_roll(args):
    """Use an item: post its card and run the automatic rolls."""
    engine = _engine(args)
    try:
        item = engine.get_item(args.item_id)
        before = engine.messages.count()
        card = engine.items.roll(item, event=_event(args), spell_level=args.spell_level)
        if card is None:
            print("Cancelled")
            return
        for message in engine.messages.list(engine.messages.count() - before):
            print(f"✓ {message.flavor}")
    except RollEnhancementError as e:
        _fail(e.to_result().error)
    except DiceNotationError as e:
        _fail(str(e))
    finally:
        engine.close()


def cmd_item_damage(args):
    """Roll damage for one formula group of an item."""
    engine = _engine(args)
    options = {'chatMessage': not args.no_message}
    if args.roll_mode:
        options['rollMode'] = args.roll_mode

    try:
        item = engine.get_item(args.item_id)
        parts = engine.items.roll_damage(
            item,
            formula_group=args.group,
            critical=args.critical,
            versatile=args.versatile,
            spell_level=args.spell_level,
            event=_event(args),
            options=options
        )
        if parts is None:
            print("Cancelled")
            return

        for part in parts:
            label = part.flavor or 'Untyped'
            print(f"  {label:20} {part.roll.notation:15} = {part.roll.total}")
        print(f"  {'Total':20} {'':15} = {sum(part.roll.total for part in parts)}")
    except RollEnhancementError as e:
        _fail(e.to_result().error)
    except DiceNotationError as e:
        _fail(str(e))
    finally:
        engine.close()


def cmd_settings_get(args):
    """Show one setting, or all of them."""
    engine = _engine(args)
    try:
        if args.key:
            print(json.dumps(engine.settings.get(args.key)))
        else:
            for key, value in engine.settings.all().items():
                print(f"  {key:25} {json.dumps(value)}")
    except KeyError as e:
        _fail(e.args[0])
    finally:
        engine.close()


def cmd_settings_set(args):
    """Change a setting. Values are parsed as JSON, falling back to a string."""
    try:
        value = json.loads(args.value)
    except json.JSONDecodeError:
        value = args.value

    engine = _engine(args)
    try:
        engine.settings.set(args.key, value)
        print(f"✓ {args.key} = {json.dumps(value)}")
    except KeyError as e:
        _fail(e.args[0])
    finally:
        engine.close()


def cmd_messages_list(args):
    """Show the latest chat messages."""
    engine = _engine(args)
    try:
        messages = engine.messages.list(args.limit)
        if not messages:
            print("No messages")
            return

        for message in messages:
            whisper = message.data.get('whisper') or []
            visibility = f" [whisper: {', '.join(whisper)}]" if whisper else ""
            print(f"  {message.created_at.isoformat()} {message.user}: {message.flavor}{visibility}")
            if args.verbose:
                print(f"    {message.content}")
    finally:
        engine.close()


def _add_modifier_flags(parser):
    parser.add_argument('--shift', action='store_true', help='Hold Shift (opens the damage dialog)')
    parser.add_argument('--alt', action='store_true', help='Hold Alt (advantage)')
    parser.add_argument('--ctrl', action='store_true', help='Hold Ctrl (disadvantage)')


def main(argv=None):
    """Main CLI entry point."""
    config = get_config()

    parser = argparse.ArgumentParser(
        description='Roll Enhancements - item rolls with automatic follow-up and per-part damage'
    )
    parser.add_argument('--db', default=config.db_path, help='Database path')
    parser.add_argument('--seed', type=int, default=config.seed, help='Dice seed')
    parser.add_argument('--log-level', default=config.log_level, help='Logging level')
    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # ========== item commands ==========
    parser_item = subparsers.add_parser('item', help='Item operations')
    item_subparsers = parser_item.add_subparsers(dest='item_command')

    parser_item_import = item_subparsers.add_parser('import', help='Import an item from JSON')
    parser_item_import.add_argument('file', help='Path to item JSON document')
    parser_item_import.set_defaults(func=cmd_item_import)

    parser_item_list = item_subparsers.add_parser('list', help='List items')
    parser_item_list.set_defaults(func=cmd_item_list)

    parser_item_roll = item_subparsers.add_parser('roll', help='Use an item')
    parser_item_roll.add_argument('item_id', help='Item ID')
    parser_item_roll.add_argument('--spell-level', type=int, help='Cast at this spell level')
    _add_modifier_flags(parser_item_roll)
    parser_item_roll.set_defaults(func=cmd_item_roll)

    parser_item_damage = item_subparsers.add_parser('damage', help='Roll damage for a formula group')
    parser_item_damage.add_argument('item_id', help='Item ID')
    parser_item_damage.add_argument('--group', type=int, default=0, help='Formula group index')
    parser_item_damage.add_argument('--critical', action='store_true', help='Critical damage')
    parser_item_damage.add_argument('--versatile', action='store_true', help='Use the versatile formula')
    parser_item_damage.add_argument('--spell-level', type=int, help='Cast at this spell level')
    parser_item_damage.add_argument('--roll-mode', choices=['publicroll', 'gmroll', 'blindroll', 'selfroll'],
                                    help='Message visibility')
    parser_item_damage.add_argument('--no-message', action='store_true', help='Roll without posting')
    _add_modifier_flags(parser_item_damage)
    parser_item_damage.set_defaults(func=cmd_item_damage)

    # ========== settings commands ==========
    parser_settings = subparsers.add_parser('settings', help='Settings')
    settings_subparsers = parser_settings.add_subparsers(dest='settings_command')

    parser_settings_get = settings_subparsers.add_parser('get', help='Show settings')
    parser_settings_get.add_argument('key', nargs='?', help='Setting name (default: all)')
    parser_settings_get.set_defaults(func=cmd_settings_get)

    parser_settings_set = settings_subparsers.add_parser('set', help='Change a setting')
    parser_settings_set.add_argument('key', help='Setting name')
    parser_settings_set.add_argument('value', help='New value (JSON)')
    parser_settings_set.set_defaults(func=cmd_settings_set)

    # ========== messages command ==========
    parser_messages = subparsers.add_parser('messages', help='Chat log')
    messages_subparsers = parser_messages.add_subparsers(dest='messages_command')

    parser_messages_list = messages_subparsers.add_parser('list', help='Show latest messages')
    parser_messages_list.add_argument('--limit', type=int, default=20, help='Number of messages to show')
    parser_messages_list.add_argument('-v', '--verbose', action='store_true', help='Show message content')
    parser_messages_list.set_defaults(func=cmd_messages_list)

    # Parse and execute
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level, log_file=config.log_file)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if hasattr(args, 'func'):
        args.func(args)
    else:
        print(f"No subcommand provided for '{args.command}'", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
