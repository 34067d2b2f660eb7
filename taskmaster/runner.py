from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from openai import OpenAI

from taskmaster.config import Settings, load_settings, require_setting
from taskmaster.flows.retrospective import RetrospectiveGeneratorFlow
from taskmaster.flows.risk_analysis import RiskAnalysisFlow
from taskmaster.flows.scope_creep import ScopeCreepDetectorFlow
from taskmaster.flows.sprint_planner import SprintPlannerFlow
from taskmaster.logging_setup import setup_logging
from taskmaster.notion.client import TaskStoreError, get_notion_client
from taskmaster.notion.projects_repo import ProjectsRepo
from taskmaster.notion.tasks_repo import TasksRepo
from taskmaster.pages.base import Notification, ReportPage
from taskmaster.pages.retrospective import RetrospectiveGeneratorPage
from taskmaster.pages.risk_analysis import RiskAnalysisPage
from taskmaster.pages.scope_creep import ScopeCreepDetectorPage
from taskmaster.pages.sprint_planner import SprintPlannerPage
from taskmaster.store.local_store import LocalStore
from taskmaster.store.session import SessionStore


REPORTS = {
    "sprint-plan": (SprintPlannerFlow, SprintPlannerPage),
    "scope-creep": (ScopeCreepDetectorFlow, ScopeCreepDetectorPage),
    "risk-analysis": (RiskAnalysisFlow, RiskAnalysisPage),
    "retrospective": (RetrospectiveGeneratorFlow, RetrospectiveGeneratorPage),
}


def _read_text(path: str | None) -> str | None:
    if path is None:
        return None
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskmaster", description="Generate AI sprint reports for a TaskMaster project.")
    parser.add_argument("--env-file", default=".env")
    parser.add_argument("--log-file", type=Path, default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Start a local (mock) session.")
    login.add_argument("email")
    login.add_argument("--name", default=None, help="Sign up with this display name.")

    sub.add_parser("logout", help="End the local session.")

    sub.add_parser("projects", help="List the projects you own.")

    use_project = sub.add_parser("use-project", help="Select one of your projects as the active project.")
    use_project.add_argument("project_id")

    def report_parser(name: str, help_text: str) -> argparse.ArgumentParser:
        report = sub.add_parser(name, help=help_text)
        report.add_argument("--load-tasks", action="store_true", help="Import tasks from the active project.")
        return report

    sprint = report_parser("sprint-plan", "Suggest a sprint plan.")
    sprint.add_argument("--tasks-file", help="One task per line: Title – Priority – Points ('-' for stdin).")
    sprint.add_argument("--sprint-duration")
    sprint.add_argument("--team-size")
    sprint.add_argument("--capacity", help="Team story point capacity.")
    sprint.add_argument("--sprint-goal")

    creep = report_parser("scope-creep", "Detect sprint scope creep.")
    creep.add_argument("--current-file", help="Current sprint tasks ('-' for stdin).")
    creep.add_argument("--original-file", help="Originally committed tasks.")
    creep.add_argument("--sprint-goal")

    risk = report_parser("risk-analysis", "Analyze sprint risks.")
    risk.add_argument("--tasks-file", help="JSON array of tasks ('-' for stdin).")
    risk.add_argument("--team-context")

    retro = report_parser("retrospective", "Generate a sprint retrospective.")
    retro.add_argument("--tasks-file", help="JSON array of tasks ('-' for stdin).")
    retro.add_argument("--sprint-goal")
    retro.add_argument("--team-sentiment")
    retro.add_argument("--notes")
    return parser


def _form_values(args: argparse.Namespace) -> dict[str, Any]:
    if args.command == "sprint-plan":
        values = {
            "tasks_text": _read_text(args.tasks_file),
            "sprint_duration": args.sprint_duration,
            "team_size": args.team_size,
            "team_story_point_capacity": args.capacity,
            "sprint_goal": args.sprint_goal,
        }
    elif args.command == "scope-creep":
        values = {
            "current_tasks_text": _read_text(args.current_file),
            "original_tasks_text": _read_text(args.original_file),
            "sprint_goal": args.sprint_goal,
        }
    elif args.command == "risk-analysis":
        values = {"tasks_json": _read_text(args.tasks_file), "team_context": args.team_context}
    else:
        values = {
            "tasks_json": _read_text(args.tasks_file),
            "sprint_goal": args.sprint_goal,
            "team_sentiment": args.team_sentiment,
            "additional_notes": args.notes,
        }
    return {key: value for key, value in values.items() if value is not None}


def _print_notification(notification: Notification) -> None:
    stream = sys.stderr if notification.destructive else sys.stdout
    print(f"{notification.title}: {notification.description}", file=stream)


def _build_projects_repo(settings: Settings) -> ProjectsRepo:
    return ProjectsRepo(client=get_notion_client(settings), database_id=settings.notion_projects_db_id)


def _build_tasks_repo(settings: Settings) -> TasksRepo:
    tasks_db_id = require_setting(settings.notion_tasks_db_id, "NOTION_TASKS_DB_ID")
    projects = _build_projects_repo(settings)
    return TasksRepo(client=projects.client, database_id=tasks_db_id, projects=projects)


def _list_projects(settings: Settings, session: SessionStore) -> int:
    user = session.current_user()
    if user is None:
        print("Error: You must be logged in to list your projects.", file=sys.stderr)
        return 1
    require_setting(settings.notion_projects_db_id, "NOTION_PROJECTS_DB_ID")
    try:
        projects = _build_projects_repo(settings).list_by_owner(user.id)
    except TaskStoreError as exc:
        print(f"Error Loading Projects: {exc}", file=sys.stderr)
        return 1

    if not projects:
        print("No projects found.")
        return 0
    active_id = session.active_project_id(user.id)
    for project in projects:
        marker = "*" if project.id == active_id else " "
        key = f" [{project.key}]" if project.key else ""
        print(f"{marker} {project.id}  {project.name}{key}")
    return 0


def _use_project(settings: Settings, session: SessionStore, project_id: str) -> int:
    user = session.current_user()
    if user is None:
        print("Error: You must be logged in to select a project.", file=sys.stderr)
        return 1
    try:
        project = _build_projects_repo(settings).get_owned(project_id, user.id)
    except TaskStoreError as exc:
        print(f"Error Loading Projects: {exc}", file=sys.stderr)
        return 1
    if project is None:
        print(f"Project Not Found: no project '{project_id}' is owned by {user.email}.", file=sys.stderr)
        return 1

    session.set_active_project_id(user.id, project.id)
    print(f"Active project set to {project.name} ({project.id})")
    return 0


def _run_report(args: argparse.Namespace, settings: Settings, session: SessionStore) -> int:
    flow_class, page_class = REPORTS[args.command]
    openai_client = OpenAI(api_key=require_setting(settings.openai_api_key, "OPENAI_API_KEY"))
    flow = flow_class.from_settings(openai_client, settings)

    tasks_repo = None
    if args.load_tasks:
        try:
            tasks_repo = _build_tasks_repo(settings)
        except TaskStoreError as exc:
            print(f"Error Loading Tasks: {exc}", file=sys.stderr)
            return 1

    page: ReportPage = page_class(flow, session, tasks_repo)
    if args.load_tasks:
        notification = page.load_tasks_from_active_project()
        _print_notification(notification)
        if notification.destructive:
            return 1

    notification = page.submit(_form_values(args))
    _print_notification(notification)
    if page.result is None:
        for error in page.field_errors:
            print(f"  {error}", file=sys.stderr)
        return 1

    print()
    print(page.render())
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = load_settings(args.env_file)
    setup_logging(settings.log_level, args.log_file)
    session = SessionStore(LocalStore(settings.state_file))

    if args.command == "login":
        user = session.signup(args.name, args.email) if args.name else session.login(args.email)
        print(f"Signed in as {user.name} ({user.id})")
        return 0
    if args.command == "logout":
        session.logout()
        print("Signed out.")
        return 0
    if args.command == "projects":
        return _list_projects(settings, session)
    if args.command == "use-project":
        return _use_project(settings, session, args.project_id)

    return _run_report(args, settings, session)


if __name__ == "__main__":
    raise SystemExit(main())
