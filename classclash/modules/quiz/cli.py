from __future__ import annotations

import argparse
import asyncio
import json

from classclash.modules.quiz.generator import GeminiQuestionSource
from classclash.modules.quiz.leaderboard import ALL_GRADES, filter_records
from classclash.modules.quiz.models import CATEGORIES, GRADES, is_category_eligible
from classclash.modules.quiz.store import HttpScoreStore


def _questions(args: argparse.Namespace) -> int:
    if not is_category_eligible(args.grade, args.category):
        raise SystemExit(
            f"Category '{args.category}' is not available for grade {args.grade}"
        )
    questions = asyncio.run(GeminiQuestionSource().get_questions(args.grade, args.category))
    print(json.dumps([q.model_dump() for q in questions], indent=2))
    return 0


def _leaderboard(args: argparse.Namespace) -> int:
    store = HttpScoreStore(args.api)
    records = asyncio.run(store.fetch_leaderboard())
    rows = filter_records(records, args.grade or ALL_GRADES)
    if args.json:
        print(json.dumps([r.model_dump() for r in rows], indent=2))
        return 0
    if not rows:
        print("No scores recorded for this grade.")
        return 0
    for r in rows:
        print(
            f"{r.id:>5}  Grade {r.grade:<3} {r.category:<15} {r.name:<20} "
            f"{r.score}/{r.total_questions}  {r.percentage:5.1f}%  {r.grade_letter}"
        )
    return 0


def _delete(args: argparse.Namespace) -> int:
    store = HttpScoreStore(args.api)
    asyncio.run(store.delete_score(args.id))
    print(f"Deleted score {args.id}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="classclash", description="ClassClash quiz tools"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    q = sub.add_parser("questions", help="Generate questions for a grade and category")
    q.add_argument("--grade", "-g", required=True, choices=GRADES)
    q.add_argument("--category", "-c", required=True, choices=CATEGORIES)

    lb = sub.add_parser("leaderboard", help="Print the leaderboard")
    lb.add_argument("--grade", "-g", choices=GRADES, help="Only show one grade")
    lb.add_argument("--api", help="Score API base URL (default: API_BASE_URL)")
    lb.add_argument("--json", action="store_true", help="Output JSON")

    d = sub.add_parser("delete", help="Delete one leaderboard record")
    d.add_argument("id", type=int)
    d.add_argument("--api", help="Score API base URL (default: API_BASE_URL)")

    args = parser.parse_args(argv)
    if args.cmd == "questions":
        return _questions(args)
    if args.cmd == "leaderboard":
        return _leaderboard(args)
    if args.cmd == "delete":
        return _delete(args)

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
