"""
EduCalc command line

    educalc streams
    educalc gpa --stream CSE --semester 3 --grade CS301=A+ --grade CS302=O ... --save --mine
    educalc cgpa --semesters 4 --gpa 1=8.5 --gpa 2=7.9 ... --save --mine
    educalc scan marksheet.jpg --grade CS301=A --save --mine
    educalc history | delete <id> | login <register> | guest | logout
    educalc feedback --rating 5 --comment "..."

Grades missing from --grade are asked for interactively.
"""

import argparse
import asyncio
import getpass
import logging
import sys
from typing import Dict, List, Optional, Sequence

from . import __version__
from .config import Settings, settings as default_settings
from .core.catalog import CurriculumCatalog
from .core.errors import EduCalcError
from .core.extraction import ExtractionNormalizer
from .core.history import periods_for_display
from .core.models import Grade, PeriodResult, UserRecord
from .flows import AccountService, CGPADraft, FeedbackService, GPADraft, SaveOutcome, ScanDraft
from .services import (
    FirebaseAuthClient,
    FirestoreProfileStore,
    GeminiExtractionClient,
    LocalStore,
)
from .services.local_store import AUTH_TOKEN_KEY, REFRESH_TOKEN_KEY

logger = logging.getLogger(__name__)

REGISTER_PROMPT = "💡 Sign in with `educalc login <register number>` to keep this result across devices."


def build_account_service(settings: Settings, local_store: LocalStore) -> AccountService:
    """Local-only unless Firebase is configured"""
    if settings.FIREBASE_API_KEY and settings.FIREBASE_PROJECT_ID:
        auth_client = FirebaseAuthClient(settings)
        profile_store = FirestoreProfileStore(
            settings,
            id_token=local_store.get(AUTH_TOKEN_KEY),
            refresh_token=local_store.get(REFRESH_TOKEN_KEY),
            auth_client=auth_client,
            on_token_refresh=local_store.save_tokens,
        )
        return AccountService(local_store, profile_store, auth_client)
    return AccountService(local_store)


def parse_assignments(pairs: Optional[Sequence[str]]) -> Dict[str, str]:
    """['CS301=A+', 'CS302 = O'] -> {'CS301': 'A+', 'CS302': 'O'}"""
    parsed = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got: {pair!r}")
        parsed[key.strip().upper()] = value.strip()
    return parsed


def prompt_grade(code: str, name: str) -> str:
    choices = "/".join(g.value for g in Grade if g is not Grade.UNSET)
    while True:
        answer = input(f"  {code} {name} [{choices}]: ").strip()
        if answer in {g.value for g in Grade if g is not Grade.UNSET}:
            return answer
        print(f"  ⚠️  Unknown grade {answer!r}")


def print_period_result(result: PeriodResult) -> None:
    print(f"\n📊 {result.stream} semester {result.period}")
    for subject in result.subjects:
        flag = "" if subject.verified else "  (not in curriculum)"
        print(f"   {subject.code:<8} {subject.grade:<3} {subject.credits:>4g} cr  {subject.name}{flag}")
    print(f"\n✅ GPA: {result.score:.2f}")


def report_save(outcome: SaveOutcome) -> None:
    print(f"💾 Saved (id {outcome.record.id})")
    if outcome.prompt_register:
        print(REGISTER_PROMPT)


class EduCalcCLI:
    """Wires settings, stores and flows to the subcommands"""

    def __init__(self, settings: Optional[Settings] = None, local_store: Optional[LocalStore] = None):
        self.settings = settings or default_settings
        self.local_store = local_store or LocalStore(settings=self.settings)
        self.account = build_account_service(self.settings, self.local_store)
        self._catalog: Optional[CurriculumCatalog] = None

    @property
    def catalog(self) -> CurriculumCatalog:
        if self._catalog is None:
            self._catalog = CurriculumCatalog.load(self.settings.catalog_path)
        return self._catalog

    def user(self) -> UserRecord:
        return self.account.current_user()

    def cmd_streams(self, args) -> int:
        for stream in self.catalog.streams:
            if args.stream and stream.id != args.stream.upper():
                continue
            semesters = ", ".join(str(p) for p in stream.periods) or "none"
            print(f"{stream.id:<6} {stream.name}  (semesters with curriculum: {semesters})")
        return 0

    async def cmd_gpa(self, args) -> int:
        draft = GPADraft(self.catalog, settings=self.settings)
        subjects = draft.select(args.stream, args.semester)
        grades = parse_assignments(args.grade)

        for subject in subjects:
            grade = grades.pop(subject.code, None) or prompt_grade(subject.code, subject.name)
            draft.set_grade(subject.code, grade)
        if grades:
            print(f"⚠️  Ignored codes not in this semester: {', '.join(sorted(grades))}")

        result = draft.calculate()
        print_period_result(result)

        status = await self._save(draft, args) if args.save else 0
        draft.reset()
        return status

    async def cmd_cgpa(self, args) -> int:
        draft = CGPADraft.for_user(self.user())
        if args.semesters:
            draft.set_num_periods(args.semesters)
        for period, value in parse_assignments(args.gpa).items():
            draft.set_score(int(period), float(value))

        for period, value in enumerate(draft.entries, start=1):
            if value is None:
                draft.set_score(period, float(input(f"  Semester {period} GPA: ")))

        result = draft.calculate()
        for period, value in enumerate(draft.entries, start=1):
            print(f"   Semester {period}: {value:.2f}")
        print(f"\n✅ CGPA over {result.periods_covered} semesters: {result.score:.2f}")

        if args.save:
            return await self._save(draft, args)
        return 0

    async def cmd_scan(self, args) -> int:
        draft = ScanDraft(
            GeminiExtractionClient(self.settings),
            ExtractionNormalizer(self.catalog, self.settings),
        )
        print("🔍 Reading marksheet...")
        result = await draft.scan_file(args.image)

        for code, grade in parse_assignments(args.grade).items():
            result = draft.update_grade(code, grade)
        print_period_result(result)

        if args.save:
            return await self._save(draft, args)
        return 0

    async def _save(self, draft, args) -> int:
        draft.confirm_ownership(args.mine)
        if not draft.can_save:
            print("⚠️  Confirm this result is your own with --mine to save it.")
            return 1
        report_save(await draft.save(self.account, self.user()))
        return 0

    def cmd_history(self, args) -> int:
        user = self.user()
        print(f"👤 {user.name} ({user.register_number})")
        if user.history.is_empty:
            print("   No saved results")
            return 0

        for record in periods_for_display(user.history):
            print(f"   [{record.id}] {record.stream} semester {record.period}: {record.score:.2f}")
        for record in user.history.cumulative_results:
            print(
                f"   [{record.id}] CGPA over {record.periods_covered} semesters: {record.score:.2f}"
                f"  ({record.created_at:%Y-%m-%d})"
            )
        return 0

    async def cmd_delete(self, args) -> int:
        user = self.user()
        updated = await self.account.delete_record(user, args.record_id)
        if updated is user:
            print(f"ℹ️  No record {args.record_id}")
        else:
            print(f"🗑️  Deleted {args.record_id}")
        return 0

    async def cmd_login(self, args) -> int:
        password = args.password or getpass.getpass("Password: ")
        user = await self.account.login(args.register_number, password, args.name, args.stream)
        print(f"✅ Signed in as {user.name} ({user.register_number})")
        return 0

    def cmd_guest(self, args) -> int:
        user = self.account.start_guest()
        print(f"👤 Guest session {user.id}")
        return 0

    def cmd_logout(self, args) -> int:
        user = self.user()
        if user.is_guest and not args.yes:
            print("⚠️  Guest history will be permanently deleted. Re-run with --yes to confirm.")
            return 1
        self.account.logout(user)
        print("👋 Signed out" if not user.is_guest else "🗑️  Local data cleared")
        return 0

    def cmd_feedback(self, args) -> int:
        FeedbackService(self.local_store).submit(self.user(), args.rating, args.comment)
        print("🙏 Feedback received")
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="educalc", description="Semester GPA and CGPA calculator")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at INFO level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("streams", help="List streams and semesters")
    p.add_argument("--stream", help="Only this stream")

    p = sub.add_parser("gpa", help="Calculate a semester GPA")
    p.add_argument("--stream", required=True, help="Stream id, e.g. CSE")
    p.add_argument("--semester", type=int, required=True)
    p.add_argument("--grade", action="append", metavar="CODE=GRADE", help="Repeatable")
    _add_save_options(p)

    p = sub.add_parser("cgpa", help="Calculate a cumulative GPA")
    p.add_argument("--semesters", type=int, help="Number of semesters (2-10)")
    p.add_argument("--gpa", action="append", metavar="SEMESTER=GPA", help="Repeatable")
    _add_save_options(p)

    p = sub.add_parser("scan", help="Read grades from a marksheet photo")
    p.add_argument("image", help="Image file")
    p.add_argument("--grade", action="append", metavar="CODE=GRADE", help="Correct a row (repeatable)")
    _add_save_options(p)

    sub.add_parser("history", help="Show saved results")

    p = sub.add_parser("delete", help="Delete a saved result")
    p.add_argument("record_id")

    p = sub.add_parser("login", help="Sign in (registers on first use)")
    p.add_argument("register_number")
    p.add_argument("--password")
    p.add_argument("--name", default="")
    p.add_argument("--stream", default="")

    sub.add_parser("guest", help="Start a new guest session")

    p = sub.add_parser("logout", help="Sign out, or clear guest data")
    p.add_argument("--yes", action="store_true", help="Confirm clearing guest data")

    p = sub.add_parser("feedback", help="Rate EduCalc")
    p.add_argument("--rating", type=int, required=True, help="1-5")
    p.add_argument("--comment", required=True)

    return parser


def _add_save_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--save", action="store_true", help="Save the result to history")
    parser.add_argument("--mine", action="store_true", help="Confirm the result is your own")


def main(argv: Optional[List[str]] = None, cli: Optional[EduCalcCLI] = None) -> int:
    args = build_parser().parse_args(argv)
    cli = cli or EduCalcCLI()
    logging.basicConfig(
        level=logging.INFO if args.verbose else cli.settings.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handler = getattr(cli, f"cmd_{args.command}")
    try:
        outcome = handler(args)
        if asyncio.iscoroutine(outcome):
            outcome = asyncio.run(outcome)
        return outcome
    except EduCalcError as e:
        print(f"❌ {e}")
        return 1
    except (ValueError, KeyError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
