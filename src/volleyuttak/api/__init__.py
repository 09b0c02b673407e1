"""Web app for the volleyball tryout roster: pages, JSON API and login gate."""

from __future__ import annotations

import logging
import time
import urllib.parse
from dataclasses import asdict
from datetime import datetime, timezone
from html import escape
from typing import Any, Callable, Iterable, Mapping, Sequence

from fastapi import FastAPI, Form, Header, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from starlette.middleware.sessions import SessionMiddleware

from volleyuttak.api.schemas import (
    AssignRequest,
    DragEndRequest,
    DragStartRequest,
    FilterResponse,
    MoveRequest,
    NotificationResponse,
    PlayerName,
    PlayersResponse,
    PotentialAddRequest,
    PotentialMoveRequest,
    PotentialRemoveRequest,
    RevalidateResponse,
    SearchRequest,
    SelectionResponse,
    StatsResponse,
    UnassignRequest,
    ViewResponse,
)
from volleyuttak.config import POSITIONS, Settings
from volleyuttak.ingest import FeedCache, FeedResult, load_feed
from volleyuttak.models import Player
from volleyuttak.notifications import NotificationCenter
from volleyuttak.persistence import KeyValueStorage, SelectionPersistence, SqliteStorage
from volleyuttak.pool import (
    ExportError,
    PlayerFilters,
    RosterView,
    apply_column_filters,
    build_roster_view,
    export_players_to_csv,
    filter_players,
    parse_column_filters,
)
from volleyuttak.pool.column_filters import OPERATOR_LABELS, OPERATORS
from volleyuttak.selection import parse_source
from volleyuttak.selection.store import TEAM
from volleyuttak.session import RosterSession, SessionRegistry


logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"
SESSION_COOKIE = "volleyuttak_session"

FILTER_CHOICES: Mapping[str, list[tuple[str, str]]] = {
    "gender": [("all", "All genders"), ("male", "Male"), ("female", "Female")],
    "is_student": [("all", "Students and others"), ("yes", "Student"), ("no", "Not student")],
    "previous_team": [("all", "Any history"), ("yes", "Played on a team"), ("no", "No previous team")],
    "desired_level": [
        ("all", "All levels"),
        ("1", "1st division"),
        ("2", "2nd division"),
        ("3", "3rd division"),
        ("4", "4th division"),
    ],
    "desired_position": [("all", "All positions")] + [(position, position) for position in POSITIONS],
    "age_group": [("all", "All ages"), ("under20", "Under 20"), ("20-25", "20-25"), ("over25", "Over 25")],
}

SELECTED_COLUMNS: list[tuple[str, str]] = [
    ("position", "Position"),
    ("name", "Name"),
    ("registration_number", "Reg. no."),
    ("gender", "Gender"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("desired_positions", "Desired positions"),
    ("desired_level", "Desired level"),
    ("is_student", "Student"),
]

PLAYER_INFO_COLUMNS: list[tuple[str, str]] = [
    ("registration_number", "Reg. no."),
    ("name", "Name"),
    ("gender", "Gender"),
    ("birth_date", "Birth date"),
    ("year", "Year"),
    ("is_student", "Student"),
    ("previous_team", "Previous team"),
    ("previous_positions", "Previous positions"),
    ("desired_positions", "Desired positions"),
    ("desired_level", "Desired level"),
    ("experience", "Experience"),
    ("availability", "Availability"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("selected_for_team", "Selected for team"),
]


def _render_page(body: str, *, user: str | None = None, script: str = "") -> str:
    nav = ""
    if user:
        nav = f"""<nav>
        <a href=\"/dashboard\">Dashboard</a>
        <a href=\"/uttak\">Selection</a>
        <a href=\"/spiller-info\">Player info</a>
        <form method=\"post\" action=\"/logout\" class=\"inline\"><button type=\"submit\" class=\"secondary\">Log out ({escape(user)})</button></form>
    </nav>"""
    return f"""<!DOCTYPE html>
<html lang=\"en\">
<head>
    <meta charset=\"utf-8\">
    <title>Volleyball tryouts</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 2rem; background: #f5f7fa; }}
        main {{ background: #fff; padding: 2rem; border-radius: 12px; box-shadow: 0 2px 6px rgba(0,0,0,0.08); }}
        nav {{ display: flex; gap: 1rem; align-items: center; margin-bottom: 1rem; }}
        nav a {{ color: #2563eb; text-decoration: none; }}
        form {{ display: grid; gap: 1rem; margin-bottom: 2rem; }}
        form.inline {{ display: inline; margin: 0; }}
        label {{ font-weight: 600; }}
        input[type=\"text\"], input[type=\"password\"], input[type=\"search\"] {{ width: 100%; padding: 0.5rem; border-radius: 6px; border: 1px solid #cbd5e1; }}
        button {{ padding: 0.6rem 1.2rem; border-radius: 6px; border: none; background: #2563eb; color: #fff; cursor: pointer; }}
        button.secondary {{ background: #475569; }}
        table {{ border-collapse: collapse; width: 100%; margin-top: 1rem; }}
        th, td {{ padding: 0.5rem; border: 1px solid #e2e8f0; text-align: left; }}
        .flash {{ padding: 1rem; border-radius: 6px; margin-bottom: 1rem; display: flex; justify-content: space-between; }}
        .flash.success {{ background: #ecfdf5; color: #047857; }}
        .flash.error {{ background: #fef2f2; color: #b91c1c; }}
        .flash.info {{ background: #eff6ff; color: #1d4ed8; }}
        .flash.warning {{ background: #fffbeb; color: #b45309; }}
        .flash button {{ background: transparent; color: inherit; padding: 0 0.5rem; }}
        .stats {{ display: flex; gap: 1rem; flex-wrap: wrap; margin-bottom: 1.5rem; }}
        .stats div {{ flex: 1 1 140px; padding: 1rem; border-radius: 8px; background: #f8fafc; border: 1px solid #e2e8f0; }}
        .stats strong {{ display: block; font-size: 1.5rem; }}
        .pool-filter {{ display: flex; gap: 1rem; flex-wrap: wrap; margin-top: 0.75rem; }}
        .pool-filter label {{ display: flex; flex-direction: column; font-weight: 600; }}
        .pool-filter select, .pool-filter input {{ margin-top: 0.35rem; padding: 0.4rem; border-radius: 6px; border: 1px solid #cbd5e1; }}
        .board {{ display: grid; grid-template-columns: 1fr 2fr 1fr; gap: 1rem; }}
        .drop-zone {{ min-height: 3rem; padding: 0.75rem; border: 2px dashed #cbd5e1; border-radius: 8px; background: #f8fafc; }}
        .drop-zone .drop-zone {{ margin-top: 0.5rem; background: #fff; }}
        .drop-zone ul {{ list-style: none; padding: 0; margin: 0.5rem 0 0; }}
        .card {{ padding: 0.5rem 0.75rem; margin-bottom: 0.4rem; border-radius: 6px; background: #fff; border: 1px solid #e2e8f0; cursor: grab; }}
        .card small {{ display: block; color: #64748b; }}
        .hint {{ color: #475569; margin: 0; }}
    </style>
</head>
<body>
    {nav}
    <main>{body}</main>
    {script}
</body>
</html>"""


def _render_notifications(session: RosterSession) -> str:
    return "".join(
        f"<div class=\"flash {escape(item.severity)}\" data-notification=\"{item.id}\">"
        f"<span>{escape(item.message)}</span>"
        f"<button type=\"button\" data-dismiss=\"{item.id}\" aria-label=\"Dismiss\">&times;</button></div>"
        for item in session.notifications.active()
    )


def _notification_models(session: RosterSession) -> list[NotificationResponse]:
    return [
        NotificationResponse(id=item.id, message=item.message, severity=item.severity)
        for item in session.notifications.active()
    ]


def _player_card(player: Player, drag_id: str) -> str:
    details = " · ".join(
        value for value in (player.registration_number, player.desired_positions, player.desired_level) if value
    )
    return (
        f"<li class=\"card\" draggable=\"true\" data-drag-id=\"{escape(drag_id)}\">"
        f"{escape(player.name)}<small>{escape(details)}</small></li>"
    )


def _filter_controls(filters: PlayerFilters, search_term: str) -> str:
    selects = []
    for key, choices in FILTER_CHOICES.items():
        current = getattr(filters, key)
        options = "".join(
            f'<option value="{escape(value)}"{" selected" if value == current else ""}>{escape(label)}</option>'
            for value, label in choices
        )
        selects.append(f"<label>{escape(key.replace('_', ' ').capitalize())}<select name=\"{key}\">{options}</select></label>")
    return f"""
    <form method=\"get\" action=\"/dashboard\" class=\"pool-filter\" id=\"filters\">
        <label>Search<input type=\"search\" id=\"search\" name=\"search\" value=\"{escape(search_term)}\" placeholder=\"Name or registration number\"></label>
        {''.join(selects)}
        <button type=\"submit\">Apply</button>
    </form>
    """


def _render_dashboard_page(
    view: RosterView,
    feed: FeedResult,
    session: RosterSession,
    *,
    user: str,
    debounce_ms: int,
    notification_ttl: float,
) -> str:
    stats = view.stats
    stats_html = f"""
    <section class=\"stats\">
        <div><strong>{stats.total_registrations}</strong>Registrations</div>
        <div><strong>{stats.selected}</strong>Selected</div>
        <div><strong>{stats.potential}</strong>Potential</div>
        <div><strong>{stats.available}</strong>Available</div>
    </section>
    """
    feed_notice = ""
    if feed.message:
        feed_notice = f"<p class=\"hint\">{escape(feed.message)}</p>"

    available_html = "".join(_player_card(player, f"available-{player.name}") for player in view.available)
    team_html = "".join(
        f"<div class=\"drop-zone\" data-drop-id=\"position-{escape(position)}\"><h3>{escape(position)} ({len(names)})</h3>"
        f"<ul>{''.join(_player_card(session.resolve_player(name), f'player-{position}-{name}') for name in names)}</ul></div>"
        for position, names in view.selection.items()
    )
    potential_html = "".join(
        f"<div class=\"drop-zone\" data-drop-id=\"potential-pos-{escape(bucket)}\"><h3>{escape(bucket)} ({len(players)})</h3>"
        f"<ul>{''.join(_player_card(player, f'potential-{player.name}') for player in players)}</ul></div>"
        for bucket, players in view.potential.items()
    )

    body = f"""
    <h1>Tryout dashboard</h1>
    <div id=\"notifications\">{_render_notifications(session)}</div>
    {feed_notice}
    {stats_html}
    <button type=\"button\" id=\"refresh\">Refresh data</button>
    {_filter_controls(view.filters, view.search_term)}
    <section class=\"board\">
        <div class=\"drop-zone\" data-drop-id=\"available-drop\">
            <h2>Available players</h2>
            <ul>{available_html}</ul>
        </div>
        <div class=\"drop-zone\" data-drop-id=\"team-drop\">
            <h2>Team</h2>
            {team_html}
        </div>
        <div class=\"drop-zone\" data-drop-id=\"potential-drop\">
            <h2>Potential players</h2>
            {potential_html}
        </div>
    </section>
    """
    return _render_page(body, user=user, script=_dashboard_script(debounce_ms, notification_ttl))


def _dashboard_script(debounce_ms: int, notification_ttl: float) -> str:
    return f"""
    <script>
    (() => {{
        const debounceMs = {int(debounce_ms)};
        const notificationMs = {int(notification_ttl * 1000)};
        let activeSource = null;

        function postJson(url, payload) {{
            return fetch(url, {{
                method: 'POST',
                headers: {{ 'Content-Type': 'application/json' }},
                body: JSON.stringify(payload),
            }});
        }}

        document.querySelectorAll('[data-drag-id]').forEach((item) => {{
            item.addEventListener('dragstart', (event) => {{
                activeSource = item.dataset.dragId;
                event.dataTransfer.setData('text/plain', activeSource);
                postJson('/api/drag/start', {{ source_id: activeSource }});
            }});
        }});

        document.querySelectorAll('[data-drop-id]').forEach((zone) => {{
            zone.addEventListener('dragover', (event) => event.preventDefault());
            zone.addEventListener('drop', async (event) => {{
                event.preventDefault();
                event.stopPropagation();
                const source = activeSource || event.dataTransfer.getData('text/plain');
                activeSource = null;
                await postJson('/api/drag/end', {{ source_id: source, target_id: zone.dataset.dropId }});
                window.location.reload();
            }});
        }});

        document.addEventListener('dragend', () => {{
            if (activeSource) {{
                postJson('/api/drag/end', {{ source_id: activeSource, target_id: null }});
                activeSource = null;
            }}
        }});

        const search = document.getElementById('search');
        let searchTimer = null;
        if (search) {{
            search.addEventListener('input', () => {{
                clearTimeout(searchTimer);
                searchTimer = setTimeout(() => {{
                    const params = new URLSearchParams(window.location.search);
                    params.set('search', search.value);
                    window.location.search = params.toString();
                }}, debounceMs);
            }});
        }}

        document.querySelectorAll('[data-dismiss]').forEach((button) => {{
            button.addEventListener('click', async () => {{
                await fetch('/api/notifications/' + button.dataset.dismiss, {{ method: 'DELETE' }});
                button.closest('.flash').remove();
            }});
        }});
        document.querySelectorAll('[data-notification]').forEach((banner) => {{
            setTimeout(() => banner.remove(), notificationMs);
        }});

        const refresh = document.getElementById('refresh');
        if (refresh) {{
            refresh.addEventListener('click', async () => {{
                refresh.disabled = true;
                try {{
                    const response = await fetch('/api/revalidate-dashboard', {{ method: 'POST' }});
                    if (!response.ok) {{
                        throw new Error('Refresh failed');
                    }}
                    setTimeout(() => window.location.reload(), 1500);
                }} catch (error) {{
                    window.location.href = '/dashboard?refresh=failed';
                }}
            }});
        }}
    }})();
    </script>
    """


def _render_table_page(
    *,
    title: str,
    action: str,
    columns: Sequence[tuple[str, str]],
    rows: Sequence[Mapping[str, Any]],
    params: Mapping[str, str],
    session: RosterSession,
    user: str,
    extra: str = "",
) -> str:
    filter_cells = []
    for key, label in columns:
        current_op = params.get(f"op_{key}", "contains")
        op_options = "".join(
            f'<option value="{escape(op)}"{" selected" if op == current_op else ""}>{escape(OPERATOR_LABELS[op])}</option>'
            for op in OPERATORS
        )
        filter_cells.append(
            f"<label>{escape(label)}<select name=\"op_{key}\">{op_options}</select>"
            f"<input type=\"text\" name=\"f_{key}\" value=\"{escape(params.get(f'f_{key}', ''))}\"></label>"
        )
    head = "".join(f"<th>{escape(label)}</th>" for _, label in columns)
    body_rows = "".join(
        "<tr>" + "".join(f"<td>{escape(str(row.get(key) or ''))}</td>" for key, _ in columns) + "</tr>"
        for row in rows
    )
    body = f"""
    <h1>{escape(title)}</h1>
    <div id=\"notifications\">{_render_notifications(session)}</div>
    {extra}
    <form method=\"get\" action=\"{action}\" class=\"pool-filter\">
        {''.join(filter_cells)}
        <button type=\"submit\">Filter</button>
    </form>
    <p class=\"hint\">{len(rows)} rows</p>
    <table><thead><tr>{head}</tr></thead><tbody>{body_rows}</tbody></table>
    """
    return _render_page(body, user=user)


def _render_login_page(*, error: str | None, name: str, needs_code: bool) -> str:
    flash = f"<div class=\"flash error\">{escape(error)}</div>" if error else ""
    code_field = ""
    if needs_code:
        code_field = """
        <label>Access code</label>
        <input type=\"password\" name=\"access_code\" autocomplete=\"current-password\">
        """
    body = f"""
    <h1>Volleyball tryouts</h1>
    {flash}
    <form method=\"post\" action=\"/login\">
        <label>Your name</label>
        <input type=\"text\" name=\"name\" value=\"{escape(name)}\" autofocus>
        {code_field}
        <button type=\"submit\">Log in</button>
    </form>
    """
    return _render_page(body)


def _selected_players(session: RosterSession) -> list[tuple[str, Player]]:
    return [
        (position, session.resolve_player(name))
        for position, names in session.store.selection().items()
        for name in names
    ]


def _selected_rows(session: RosterSession) -> list[dict[str, Any]]:
    rows = []
    for position, player in _selected_players(session):
        row = player.model_dump()
        row["position"] = position
        rows.append(row)
    return rows


def _player_rows(players: Iterable[Player]) -> list[dict[str, Any]]:
    return [player.model_dump() for player in players]


def _default_storage(settings: Settings) -> KeyValueStorage:
    return SqliteStorage(settings.db_path)


def create_app(
    settings: Settings | None = None,
    *,
    feed_loader: Callable[[], FeedResult] | None = None,
    storage: KeyValueStorage | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="volleyball tryouts")
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE,
        same_site="lax",
    )

    storage = storage if storage is not None else _default_storage(settings)
    feed_cache = FeedCache(feed_loader or (lambda: load_feed(settings)), ttl=settings.feed_ttl, clock=clock)

    def players_provider() -> Sequence[Player]:
        return feed_cache.get().players

    def session_factory(user: str) -> RosterSession:
        return RosterSession(
            SelectionPersistence(storage, namespace=user),
            players_provider,
            notifications=NotificationCenter(ttl=settings.notification_ttl, clock=clock),
            search_debounce=settings.search_debounce_ms / 1000.0,
            clock=clock,
        )

    registry = SessionRegistry(session_factory)
    app.state.settings = settings
    app.state.storage = storage
    app.state.feed_cache = feed_cache
    app.state.sessions = registry

    def _current_user(request: Request) -> str | None:
        user = request.session.get(SESSION_USER_KEY)
        return user if isinstance(user, str) and user else None

    def _require_session(request: Request) -> RosterSession:
        user = _current_user(request)
        if user is None:
            raise HTTPException(status_code=401, detail="Not logged in")
        return registry.get(user)

    def _apply(session: RosterSession, operation: Callable[..., bool], *args: Any) -> bool:
        try:
            return operation(*args)
        except ValueError as exc:
            session.notifications.push(str(exc), "error")
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    def _selection_response(
        session: RosterSession,
        *,
        changed: bool | None = None,
        action: str | None = None,
    ) -> SelectionResponse:
        return SelectionResponse(
            selection=session.store.selection(),
            potential=session.store.potential_groups(),
            changed=changed,
            action=action,
            notifications=_notification_models(session),
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # -- pages -----------------------------------------------------------

    @app.get("/")
    async def index(request: Request):
        target = "/dashboard" if _current_user(request) else "/login"
        return RedirectResponse(target, status_code=303)

    @app.get("/login", response_class=HTMLResponse)
    async def login_page(request: Request):
        if _current_user(request):
            return RedirectResponse("/dashboard", status_code=303)
        return HTMLResponse(_render_login_page(error=None, name="", needs_code=bool(settings.access_code)))

    @app.post("/login", response_class=HTMLResponse)
    async def login(
        request: Request,
        name: str = Form(""),
        access_code: str = Form(""),
    ):
        name = name.strip()
        error = None
        if not name:
            error = "Enter your name to log in."
        elif settings.access_code and access_code != settings.access_code:
            error = "Wrong access code."
        if error:
            content = _render_login_page(error=error, name=name, needs_code=bool(settings.access_code))
            return HTMLResponse(content, status_code=401)
        request.session[SESSION_USER_KEY] = name
        logger.info("User %s logged in", name)
        return RedirectResponse("/dashboard", status_code=303)

    @app.post("/logout")
    async def logout(request: Request):
        request.session.clear()
        return RedirectResponse("/login", status_code=303)

    @app.get("/dashboard", response_class=HTMLResponse)
    async def dashboard(request: Request):
        user = _current_user(request)
        if user is None:
            return RedirectResponse("/login", status_code=303)
        session = registry.get(user)
        params = request.query_params
        if params.get("refresh") == "failed":
            session.notifications.push("Could not refresh the dashboard", "error")
            query = urllib.parse.urlencode([(k, v) for k, v in params.multi_items() if k != "refresh"])
            return RedirectResponse(f"/dashboard?{query}" if query else "/dashboard", status_code=303)
        filters = PlayerFilters.from_mapping(params)
        session.set_filters(filters)
        feed = feed_cache.get()
        view = build_roster_view(list(feed.players), session.store, filters, params.get("search", ""))
        content = _render_dashboard_page(
            view,
            feed,
            session,
            user=user,
            debounce_ms=settings.search_debounce_ms,
            notification_ttl=settings.notification_ttl,
        )
        return HTMLResponse(content)

    @app.get("/uttak", response_class=HTMLResponse)
    async def selected_page(request: Request):
        user = _current_user(request)
        if user is None:
            return RedirectResponse("/login", status_code=303)
        session = registry.get(user)
        params = dict(request.query_params)
        rows = apply_column_filters(_selected_rows(session), parse_column_filters(params, [key for key, _ in SELECTED_COLUMNS]))
        query = urllib.parse.urlencode(list(request.query_params.multi_items()))
        export_link = f"<p><a href=\"/api/export.csv{'?' + escape(query) if query else ''}\">Download spreadsheet export</a></p>"
        content = _render_table_page(
            title="Selected players",
            action="/uttak",
            columns=SELECTED_COLUMNS,
            rows=rows,
            params=params,
            session=session,
            user=user,
            extra=export_link,
        )
        return HTMLResponse(content)

    @app.get("/spiller-info", response_class=HTMLResponse)
    async def player_info_page(request: Request):
        user = _current_user(request)
        if user is None:
            return RedirectResponse("/login", status_code=303)
        session = registry.get(user)
        feed = feed_cache.get()
        if feed.error:
            session.notifications.push(feed.message or "Could not load players", "error")
        params = dict(request.query_params)
        rows = apply_column_filters(
            _player_rows(feed.players),
            parse_column_filters(params, [key for key, _ in PLAYER_INFO_COLUMNS]),
        )
        content = _render_table_page(
            title="Player info",
            action="/spiller-info",
            columns=PLAYER_INFO_COLUMNS,
            rows=rows,
            params=params,
            session=session,
            user=user,
        )
        return HTMLResponse(content)

    # -- feed ------------------------------------------------------------

    @app.get("/api/players", response_model=PlayersResponse)
    async def list_players():
        feed = feed_cache.get()
        return PlayersResponse(
            players=[PlayerName(name=player.name) for player in feed.players],
            detailed_players=list(feed.players),
            total_registrations=feed.total_registrations,
            source=feed.source,
            fetched_at=feed.fetched_at,
            message=feed.message,
            error=feed.error,
        )

    @app.get("/api/players/filter", response_model=FilterResponse)
    async def filter_feed(request: Request, search: str = Query("")):
        filters = PlayerFilters.from_mapping(request.query_params)
        players = filter_players(feed_cache.get().players, filters, search)
        return FilterResponse(
            players=players,
            total=len(players),
            active_filters=filters.active(),
            search_term=search,
        )

    @app.post("/api/revalidate-dashboard", response_model=RevalidateResponse)
    async def revalidate_dashboard(request: Request, authorization: str | None = Header(None)):
        user = _current_user(request)
        secret = settings.revalidation_secret
        if secret and user is None and authorization != f"Bearer {secret}":
            raise HTTPException(status_code=401, detail="Unauthorized")
        feed_cache.invalidate()
        if user is not None:
            registry.get(user).notifications.push("Dashboard refreshed. Loading new data...", "success")
        return RevalidateResponse(
            message="Dashboard revalidated successfully",
            timestamp=datetime.now(timezone.utc),
        )

    # -- selection -------------------------------------------------------

    @app.get("/api/selection", response_model=SelectionResponse)
    async def get_selection(request: Request):
        return _selection_response(_require_session(request))

    @app.post("/api/selection/assign", response_model=SelectionResponse)
    async def assign(request: Request, payload: AssignRequest):
        session = _require_session(request)
        changed = _apply(session, session.assign_to_position, session.resolve_player(payload.name), payload.position)
        return _selection_response(session, changed=changed, action="assign_to_position")

    @app.post("/api/selection/unassign", response_model=SelectionResponse)
    async def unassign(request: Request, payload: UnassignRequest):
        session = _require_session(request)
        changed = _apply(session, session.unassign, payload.position, payload.name)
        return _selection_response(session, changed=changed, action="unassign")

    @app.post("/api/selection/move", response_model=SelectionResponse)
    async def move(request: Request, payload: MoveRequest):
        session = _require_session(request)
        changed = _apply(session, session.move, payload.from_position, payload.name, payload.to_position)
        return _selection_response(session, changed=changed, action="move")

    @app.post("/api/potential/add", response_model=SelectionResponse)
    async def add_potential(request: Request, payload: PotentialAddRequest):
        session = _require_session(request)
        player = session.resolve_player(payload.name)
        member = session.store.membership(payload.name)
        if payload.bucket is not None or (member is not None and member.kind == TEAM):
            changed = _apply(session, session.move_to_potential_from_selection, player, payload.bucket)
            action = "move_to_potential_from_selection"
        else:
            changed = _apply(session, session.add_to_potential, player)
            action = "add_to_potential"
        return _selection_response(session, changed=changed, action=action)

    @app.post("/api/potential/remove", response_model=SelectionResponse)
    async def remove_potential(request: Request, payload: PotentialRemoveRequest):
        session = _require_session(request)
        changed = _apply(session, session.remove_from_potential, payload.name)
        return _selection_response(session, changed=changed, action="remove_from_potential")

    @app.post("/api/potential/move", response_model=SelectionResponse)
    async def move_potential(request: Request, payload: PotentialMoveRequest):
        session = _require_session(request)
        changed = _apply(session, session.move_potential, payload.name, payload.bucket)
        return _selection_response(session, changed=changed, action="move_potential")

    @app.post("/api/drag/start")
    async def drag_start(request: Request, payload: DragStartRequest):
        session = _require_session(request)
        session.drag.on_drag_start(parse_source(payload.source_id))
        return {"dragging": session.drag.dragging}

    @app.post("/api/drag/end", response_model=SelectionResponse)
    async def drag_end(request: Request, payload: DragEndRequest):
        session = _require_session(request)
        try:
            action = session.drag.handle_ids(payload.source_id, payload.target_id)
        except ValueError as exc:
            session.notifications.push(str(exc), "error")
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _selection_response(session, changed=action is not None, action=action)

    # -- view ------------------------------------------------------------

    @app.put("/api/search")
    async def set_search(request: Request, payload: SearchRequest):
        session = _require_session(request)
        session.set_search_term(payload.term)
        return {"term": payload.term, "pending": session.search.is_pending}

    @app.get("/api/view", response_model=ViewResponse)
    async def get_view(request: Request):
        session = _require_session(request)
        session.set_filters(PlayerFilters.from_mapping(request.query_params))
        feed = feed_cache.get()
        view = session.view()
        return ViewResponse(
            available=view.available,
            selection=view.selection,
            potential=view.potential,
            stats=StatsResponse(**asdict(view.stats)),
            search_term=view.search_term,
            search_pending=session.search.is_pending,
            active_filters=view.filters.active(),
            source=feed.source,
            message=feed.message,
            notifications=_notification_models(session),
        )

    @app.delete("/api/notifications/{notification_id}")
    async def dismiss_notification(request: Request, notification_id: int):
        session = _require_session(request)
        if not session.notifications.dismiss(notification_id):
            raise HTTPException(status_code=404, detail="Notification not found")
        return {"dismissed": notification_id}

    # -- export ----------------------------------------------------------

    @app.get("/api/export.csv")
    async def export_csv(request: Request, scope: str = Query("selected")):
        session = _require_session(request)
        params = dict(request.query_params)
        if scope == "all":
            columns = [key for key, _ in PLAYER_INFO_COLUMNS]
            rows = _player_rows(feed_cache.get().players)
        elif scope == "selected":
            columns = [key for key, _ in SELECTED_COLUMNS]
            rows = _selected_rows(session)
        else:
            raise HTTPException(status_code=400, detail=f"Unknown export scope {scope!r}")
        rows = apply_column_filters(rows, parse_column_filters(params, columns))
        players = [session.resolve_player(str(row["name"])) for row in rows]
        try:
            csv_text = export_players_to_csv(players, feed_sheet=settings.sheet_title)
        except ExportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return Response(
            content=csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=uttak.csv"},
        )

    return app


__all__ = ["create_app"]
