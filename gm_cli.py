"""Game-master command line tool for a running Stormsheet Server.

Issues grants, inspects and acknowledges pending grants, and rolls attacks
through the server's HTTP API. The server must be running.

Usage:
    python gm_cli.py level-up --character kaladin --level 3
    python gm_cli.py spren --character kaladin --order Windrunner --spren-type Honorspren
    python gm_cli.py expertise --character shallan --name Alchemy
    python gm_cli.py item --character adolin --item iron-sword --quantity 2
    python gm_cli.py pending --character kaladin
    python gm_cli.py ack --character kaladin --kind level-up
    python gm_cli.py attack --skill 8 --bonus 2 --damage d6+1 --defense 12 --count 3

Environment variables:
    STORMSHEET_URL  Server URL (default: http://127.0.0.1:8000)
"""

import argparse
import sys

import httpx

from config import SERVER_URL
from engine.rules import advantage_description
from models.attacks import AdvantageMode


def _request(method: str, url: str, **kwargs) -> httpx.Response:
    """Make an HTTP request, handling connection errors."""
    kwargs.setdefault("timeout", 10.0)
    try:
        return httpx.request(method, url, **kwargs)
    except httpx.ConnectError:
        print(f"Error: Could not connect to server at {url}", file=sys.stderr)
        print("Is the server running?", file=sys.stderr)
        sys.exit(1)


def _handle_error(resp: httpx.Response) -> None:
    """Print the server's failure reason and exit on any non-200 response."""
    if resp.status_code == 200:
        return
    try:
        body = resp.json()
    except ValueError:
        body = {}
    detail = body.get("error") or body.get("detail") or resp.text
    print(f"Error: {resp.status_code}: {detail}", file=sys.stderr)
    sys.exit(1)


def issue_grant(url: str, payload: dict) -> None:
    """Queue a grant and report whether it was pushed immediately."""
    resp = _request("POST", f"{url}/gm/grants", json=payload)
    _handle_error(resp)
    data = resp.json()
    grant = data["grant"]
    status = "delivered" if data["delivered"] else "queued"
    print(f"Granted {grant['kind']} to {grant['characterId']} ({status})")
    print(f"Grant ID: {grant['grantId']}")
    print(f"Pending:  {data['pending']}")


def show_pending(url: str, character_id: str) -> None:
    """List pending grants of every kind for a character."""
    resp = _request("GET", f"{url}/characters/{character_id}/grants")
    _handle_error(resp)
    data = resp.json()
    connected = "connected" if data["connected"] else "not connected"
    print(f"{character_id} ({connected})")
    print(f"{'KIND':<12} {'STATE':<10} {'PENDING':<8}")
    print("-" * 30)
    for kind, queue in data["queues"].items():
        print(f"{kind:<12} {queue['state']:<10} {len(queue['pending']):<8}")


def acknowledge(url: str, character_id: str, kind: str, grant_id: str | None) -> None:
    """Acknowledge the head grant of a kind on a character's behalf."""
    body = {"grantId": grant_id} if grant_id else None
    resp = _request("POST", f"{url}/characters/{character_id}/grants/{kind}/ack", json=body)
    _handle_error(resp)
    data = resp.json()
    if data["acknowledged"] is None:
        print("Nothing acknowledged.")
    else:
        print(f"Acknowledged {data['acknowledged']['grantId']}")
    print(f"Remaining: {data['remaining']}")


def roll_attack(url: str, params: dict, count: int) -> None:
    """Roll one attack, or a combination when ``count`` is above 1."""
    if count > 1:
        resp = _request(
            "POST", f"{url}/calculations/attack/combination",
            json={**params, "attackCount": count},
        )
        _handle_error(resp)
        combination = resp.json()["combination"]
        for attack in combination["attacks"]:
            combat = attack["combat"]
            print(f"#{attack['number']:<3} {combat['hitDescription']:<28} damage {combat['damageDealt']}")
        summary = combination["summary"]
        print(
            f"Hits: {summary['hitCount']}/{combination['attackCount']}  "
            f"Total damage: {summary['totalDamage']}  "
            f"Average: {summary['averageDamagePerAttack']:.2f}"
        )
        return

    resp = _request("POST", f"{url}/calculations/attack/execute", json=params)
    _handle_error(resp)
    attack = resp.json()["attack"]
    roll = attack["attackRoll"]
    combat = attack["combat"]
    print(advantage_description(AdvantageMode(roll['advantageMode'])))
    print(f"Rolls: {roll['rollsGenerated']} -> {roll['finalRoll']}  Total: {roll['total']}")
    print(f"{combat['hitDescription']}  Damage: {combat['damageDealt']}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Issue grants and roll attacks on a Stormsheet Server",
    )

    url_kwargs = dict(
        default=SERVER_URL,
        help=f"Server URL (default: {SERVER_URL}, or set STORMSHEET_URL env var)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    level_parser = subparsers.add_parser("level-up", help="Grant a level-up")
    level_parser.add_argument("--character", required=True, help="Character ID")
    level_parser.add_argument("--level", required=True, type=int, help="New level")
    level_parser.add_argument("--url", **url_kwargs)

    spren_parser = subparsers.add_parser("spren", help="Grant a spren bond")
    spren_parser.add_argument("--character", required=True, help="Character ID")
    spren_parser.add_argument("--order", required=True, help="Radiant order")
    spren_parser.add_argument("--spren-type", help="Spren type, e.g. Honorspren")
    spren_parser.add_argument("--surge", action="append", default=[], help="Surge (repeatable)")
    spren_parser.add_argument("--philosophy", help="First ideal or philosophy")
    spren_parser.add_argument("--url", **url_kwargs)

    expertise_parser = subparsers.add_parser("expertise", help="Grant an expertise")
    expertise_parser.add_argument("--character", required=True, help="Character ID")
    expertise_parser.add_argument("--name", required=True, help="Expertise name")
    expertise_parser.add_argument("--url", **url_kwargs)

    item_parser = subparsers.add_parser("item", help="Grant an item")
    item_parser.add_argument("--character", required=True, help="Character ID")
    item_parser.add_argument("--item", required=True, help="Item ID")
    item_parser.add_argument("--quantity", type=int, default=1, help="Quantity (default 1)")
    item_parser.add_argument("--url", **url_kwargs)

    pending_parser = subparsers.add_parser("pending", help="Show pending grants")
    pending_parser.add_argument("--character", required=True, help="Character ID")
    pending_parser.add_argument("--url", **url_kwargs)

    ack_parser = subparsers.add_parser("ack", help="Acknowledge a character's head grant")
    ack_parser.add_argument("--character", required=True, help="Character ID")
    ack_parser.add_argument(
        "--kind", required=True, choices=["level-up", "spren", "expertise", "item"],
    )
    ack_parser.add_argument("--grant-id", help="Only acknowledge this grant")
    ack_parser.add_argument("--url", **url_kwargs)

    attack_parser = subparsers.add_parser("attack", help="Roll an attack")
    attack_parser.add_argument("--skill", required=True, type=int, help="Skill total")
    attack_parser.add_argument("--bonus", type=int, default=0, help="Attack bonus modifiers")
    attack_parser.add_argument("--damage", required=True, help="Damage notation, e.g. 2d6+3")
    attack_parser.add_argument("--damage-bonus", type=int, default=0, help="Extra flat damage")
    attack_parser.add_argument("--defense", required=True, type=int, help="Target defense")
    attack_parser.add_argument(
        "--mode", default="normal", choices=["normal", "advantage", "disadvantage"],
    )
    attack_parser.add_argument("--count", type=int, default=1, help="Number of attacks")
    attack_parser.add_argument("--url", **url_kwargs)

    args = parser.parse_args()

    if args.command == "level-up":
        issue_grant(args.url, {
            "kind": "level-up", "characterId": args.character, "newLevel": args.level,
        })
    elif args.command == "spren":
        issue_grant(args.url, {
            "kind": "spren",
            "characterId": args.character,
            "order": args.order,
            "sprenType": args.spren_type,
            "surgePair": args.surge,
            "philosophy": args.philosophy,
        })
    elif args.command == "expertise":
        issue_grant(args.url, {
            "kind": "expertise", "characterId": args.character, "expertiseName": args.name,
        })
    elif args.command == "item":
        issue_grant(args.url, {
            "kind": "item",
            "characterId": args.character,
            "itemId": args.item,
            "quantity": args.quantity,
        })
    elif args.command == "pending":
        show_pending(args.url, args.character)
    elif args.command == "ack":
        acknowledge(args.url, args.character, args.kind, args.grant_id)
    elif args.command == "attack":
        roll_attack(args.url, {
            "skillTotal": args.skill,
            "bonusModifiers": args.bonus,
            "damageNotation": args.damage,
            "damageBonus": args.damage_bonus,
            "targetDefense": args.defense,
            "advantageMode": args.mode,
        }, args.count)


if __name__ == "__main__":
    main()
