"""
Google Calendar integration for consultants.

OAuth2 authorization-code flow and the Calendar v3 REST API, called over
httpx. The OAuth state is a signed JWT, which lets the unauthenticated
callback trust its user id. Tokens live in the ``google_tokens`` table, one
row per user.
Event operations never raise: callers treat calendar sync as a side effect.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
import jwt
from fastapi import HTTPException
from supabase import Client

from app.config import settings
from app.modules.calendar.schemas import (
    CalendarBulkSyncResponse, CalendarEvent, CalendarStatusResponse, EventTime, GoogleTokens,
)

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/userinfo.email",
]

REFRESH_MARGIN = timedelta(minutes=5)
VISIT_DURATION = timedelta(hours=1)
STATE_MAX_AGE_SECONDS = 15 * 60
STATE_ALGORITHM = "HS256"
VISIT_REMINDERS = {
    "useDefault": False,
    "overrides": [
        {"method": "popup", "minutes": 30},
        {"method": "email", "minutes": 60},
    ],
}
SYNCABLE_VISIT_STATUSES = ("pending", "confirmed")
SYNC_VISIT_SELECT = "*, leads(name, email, phone), properties(title, reference, address, municipality)"


class GoogleOAuthError(Exception):
    pass


def _state_key() -> str:
    secret = settings.oauth_state_secret or settings.google_client_secret
    if not secret:
        raise GoogleOAuthError("not_configured")
    return secret


def encode_state(user_id: str, now_ms: Optional[int] = None) -> str:
    """OAuth state as an HS256 JWT carrying the user id; expires after 15 minutes."""
    issued_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    payload = {
        "userId": user_id,
        "timestamp": issued_ms,
        "exp": issued_ms // 1000 + STATE_MAX_AGE_SECONDS,
    }
    raw = jwt.encode(payload, _state_key(), algorithm=STATE_ALGORITHM)
    return raw if isinstance(raw, str) else raw.decode("utf-8")


def decode_state(state: str) -> str:
    """Return the user id carried by a signed OAuth state value."""
    try:
        payload = jwt.decode(state, _state_key(), algorithms=[STATE_ALGORITHM], options={"require": ["exp"]})
    except jwt.ExpiredSignatureError as e:
        raise GoogleOAuthError("state_expired") from e
    except jwt.PyJWTError as e:
        raise GoogleOAuthError("invalid_state") from e
    user_id = payload.get("userId")
    if not user_id:
        raise GoogleOAuthError("invalid_state")
    return user_id


def get_google_auth_url(state: str) -> str:
    params = {
        "client_id": settings.google_client_id or "",
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": " ".join(GOOGLE_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "state": state,
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def needs_refresh(expires_at: Any, now: Optional[datetime] = None) -> bool:
    expiry = _parse_timestamp(expires_at)
    if expiry is None:
        return True
    now = now or datetime.now(timezone.utc)
    return expiry - REFRESH_MARGIN <= now


def build_visit_event(
    scheduled_at: datetime,
    property_title: Optional[str] = None,
    property_reference: Optional[str] = None,
    property_address: Optional[str] = None,
    client_name: Optional[str] = None,
    client_email: Optional[str] = None,
    client_phone: Optional[str] = None,
    notes: Optional[str] = None,
) -> CalendarEvent:
    start = _parse_timestamp(scheduled_at)
    end = start + VISIT_DURATION
    lines = [
        property_title and f"Imóvel: {property_title}",
        client_name and f"Cliente: {client_name}",
        client_email and f"Email: {client_email}",
        client_phone and f"Telefone: {client_phone}",
        notes and f"\nNotas: {notes}",
        f"\nVer detalhes: {settings.site_url.rstrip('/')}/admin/visitas",
    ]
    return CalendarEvent(
        summary=f"Visita - {property_reference or 'Imóvel'}",
        description="\n".join(line for line in lines if line),
        location=property_address or None,
        start=EventTime(date_time=start.isoformat(), time_zone=settings.calendar_time_zone),
        end=EventTime(date_time=end.isoformat(), time_zone=settings.calendar_time_zone),
        attendees=[{"email": client_email}] if client_email else None,
        reminders=VISIT_REMINDERS,
    )


def visit_time_window(scheduled_at: datetime) -> Dict[str, Any]:
    start = _parse_timestamp(scheduled_at)
    end = start + VISIT_DURATION
    return CalendarEvent(
        start=EventTime(date_time=start.isoformat(), time_zone=settings.calendar_time_zone),
        end=EventTime(date_time=end.isoformat(), time_zone=settings.calendar_time_zone),
    ).to_google()


class GoogleCalendarService:
    def __init__(self, supabase: Client, transport: Optional[httpx.BaseTransport] = None):
        self.supabase = supabase
        self.transport = transport

    def _http(self) -> httpx.Client:
        return httpx.Client(timeout=settings.http_timeout_seconds, transport=self.transport)

    @property
    def is_configured(self) -> bool:
        return bool(settings.google_client_id and settings.google_client_secret)

    # -- OAuth -------------------------------------------------------------

    def _token_request(self, data: Dict[str, str]) -> GoogleTokens:
        form = {
            "client_id": settings.google_client_id or "",
            "client_secret": settings.google_client_secret or "",
            **data,
        }
        try:
            with self._http() as client:
                r = client.post(GOOGLE_TOKEN_URL, data=form)
        except httpx.HTTPError as e:
            raise GoogleOAuthError(f"token request failed: {e}") from e
        try:
            body = r.json()
        except ValueError:
            body = {}
        if r.status_code >= 400 or body.get("error"):
            raise GoogleOAuthError(body.get("error_description") or body.get("error") or f"HTTP {r.status_code}")
        return GoogleTokens(**body)

    def exchange_code(self, code: str) -> GoogleTokens:
        return self._token_request({
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": settings.google_redirect_uri,
        })

    def refresh_access_token(self, refresh_token: str) -> GoogleTokens:
        return self._token_request({
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        })

    def fetch_user_info(self, access_token: str) -> Dict[str, Any]:
        """Google account profile; empty when unavailable."""
        try:
            with self._http() as client:
                r = client.get(GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
            if r.status_code == 200:
                return r.json() or {}
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Google user info lookup failed: {e}")
        return {}

    def store_tokens(self, user_id: str, tokens: GoogleTokens, profile: Optional[Dict[str, Any]] = None) -> None:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=tokens.expires_in)
        row = {
            "user_id": user_id,
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token,
            "scope": tokens.scope,
            "token_type": tokens.token_type,
            "expires_at": expires_at.isoformat(),
        }
        if profile:
            row.update({
                "google_email": profile.get("email"),
                "google_name": profile.get("name"),
                "google_picture": profile.get("picture"),
            })
        try:
            self.supabase.table("google_tokens").upsert(row, on_conflict="user_id").execute()
        except Exception as e:
            logger.error(f"Error storing Google tokens for {user_id}: {e}")
            raise GoogleOAuthError("db_error") from e

    def complete_authorization(self, code: str, state: str) -> str:
        """Exchange the callback code and store tokens. Returns the connected user id."""
        if not self.is_configured:
            raise GoogleOAuthError("not_configured")
        user_id = decode_state(state)
        try:
            tokens = self.exchange_code(code)
        except GoogleOAuthError as e:
            logger.error(f"Google token exchange failed: {e}")
            raise GoogleOAuthError("token_error") from e
        self.store_tokens(user_id, tokens, self.fetch_user_info(tokens.access_token))
        logger.info(f"Google Calendar connected for user {user_id}")
        return user_id

    def _get_token_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("google_tokens")\
            .select("*")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data

    def get_valid_access_token(self, user_id: str) -> Optional[str]:
        """Stored access token, refreshed first when it expires within five minutes."""
        try:
            row = self._get_token_row(user_id)
        except Exception as e:
            logger.error(f"Error loading Google tokens for {user_id}: {e}")
            return None
        if not row:
            return None
        if not needs_refresh(row.get("expires_at")):
            return row["access_token"]

        refresh_token = row.get("refresh_token")
        if not refresh_token:
            return None
        try:
            tokens = self.refresh_access_token(refresh_token)
            if not tokens.refresh_token:
                tokens.refresh_token = refresh_token
            self.store_tokens(user_id, tokens)
            return tokens.access_token
        except GoogleOAuthError as e:
            logger.error(f"Error refreshing Google token for {user_id}: {e}")
            return None

    def is_connected(self, user_id: str) -> bool:
        try:
            return self._get_token_row(user_id) is not None
        except Exception as e:
            logger.error(f"Error checking Google Calendar connection for {user_id}: {e}")
            return False

    def get_status(self, user_id: str) -> CalendarStatusResponse:
        try:
            row = self._get_token_row(user_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not row:
            return CalendarStatusResponse(connected=False)
        return CalendarStatusResponse(
            connected=True,
            email=row.get("google_email"),
            name=row.get("google_name"),
            picture=row.get("google_picture"),
            expires_at=row.get("expires_at"),
        )

    def disconnect(self, user_id: str) -> None:
        try:
            self.supabase.table("google_tokens").delete().eq("user_id", user_id).execute()
        except Exception as e:
            logger.error(f"Error disconnecting Google Calendar for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to disconnect")

    # -- events ------------------------------------------------------------

    def create_event(self, user_id: str, event: CalendarEvent) -> Optional[str]:
        access_token = self.get_valid_access_token(user_id)
        if not access_token:
            logger.info(f"No valid Google access token for user {user_id}")
            return None
        return self._insert_event(access_token, event)

    def _insert_event(self, access_token: str, event: CalendarEvent) -> Optional[str]:
        try:
            with self._http() as client:
                r = client.post(
                    GOOGLE_EVENTS_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                    json=event.to_google(),
                )
            if r.status_code >= 400:
                logger.error(f"Error creating calendar event: status={r.status_code} body={r.text[:500]}")
                return None
            return r.json().get("id")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error creating calendar event: {e}")
            return None

    def update_event(self, user_id: str, event_id: str, changes: Dict[str, Any]) -> bool:
        access_token = self.get_valid_access_token(user_id)
        if not access_token:
            return False
        try:
            with self._http() as client:
                r = client.patch(
                    f"{GOOGLE_EVENTS_URL}/{event_id}",
                    headers={"Authorization": f"Bearer {access_token}"},
                    json=changes,
                )
            return r.status_code < 400
        except httpx.HTTPError as e:
            logger.error(f"Error updating calendar event {event_id}: {e}")
            return False

    def delete_event(self, user_id: str, event_id: str) -> bool:
        """Delete an event. An event that no longer exists counts as deleted."""
        access_token = self.get_valid_access_token(user_id)
        if not access_token:
            return False
        try:
            with self._http() as client:
                r = client.delete(
                    f"{GOOGLE_EVENTS_URL}/{event_id}",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            return r.status_code < 400 or r.status_code == 404
        except httpx.HTTPError as e:
            logger.error(f"Error deleting calendar event {event_id}: {e}")
            return False

    # -- visit sync --------------------------------------------------------

    def _get_visit_event_id(self, visit_id: str) -> Optional[str]:
        result = self.supabase.table("visits")\
            .select("google_event_id")\
            .eq("id", visit_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data.get("google_event_id")

    def _clear_visit_event_id(self, visit_id: str) -> None:
        self.supabase.table("visits").update({"google_event_id": None}).eq("id", visit_id).execute()

    def sync_visit_update(
        self,
        visit_id: str,
        consultant_id: str,
        scheduled_at: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Reflect a visit change on the consultant's calendar event"""
        if not self.is_connected(consultant_id):
            return {"success": True, "message": "No calendar connected"}
        event_id = self._get_visit_event_id(visit_id)
        if not event_id:
            return {"success": True, "message": "No calendar event to update"}

        if status == "cancelled":
            return {"success": self.remove_visit_event(visit_id, consultant_id, event_id)}
        if scheduled_at:
            return {"success": self.update_event(consultant_id, event_id, visit_time_window(scheduled_at))}
        return {"success": True}

    def sync_visit_delete(self, visit_id: str, consultant_id: str) -> Dict[str, Any]:
        if not self.is_connected(consultant_id):
            return {"success": True, "message": "No calendar connected"}
        event_id = self._get_visit_event_id(visit_id)
        if not event_id:
            return {"success": True, "message": "No calendar event to delete"}
        return {"success": self.remove_visit_event(visit_id, consultant_id, event_id)}

    def remove_visit_event(self, visit_id: str, consultant_id: str, event_id: str) -> bool:
        deleted = self.delete_event(consultant_id, event_id)
        if deleted:
            self._clear_visit_event_id(visit_id)
        return deleted

    def sync_upcoming_visits(self, user_id: str) -> CalendarBulkSyncResponse:
        """Push upcoming pending or confirmed visits without an event to the user's calendar.

        Covers visits assigned to the user and unassigned ones.
        """
        if not self.is_connected(user_id):
            raise HTTPException(status_code=400, detail="Google Calendar not connected")
        access_token = self.get_valid_access_token(user_id)
        if not access_token:
            raise HTTPException(status_code=401, detail="Failed to refresh token")

        try:
            result = self.supabase.table("visits")\
                .select(SYNC_VISIT_SELECT)\
                .in_("status", list(SYNCABLE_VISIT_STATUSES))\
                .gte("scheduled_at", datetime.now(timezone.utc).isoformat())\
                .is_("google_event_id", "null")\
                .or_(f"assigned_to.eq.{user_id},assigned_to.is.null")\
                .order("scheduled_at")\
                .execute()
        except Exception as e:
            logger.error(f"Error loading visits to sync for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load visits")

        visits = result.data or []
        if not visits:
            return CalendarBulkSyncResponse(message="No visits to sync", synced=0)

        synced = 0
        for visit in visits:
            lead = visit.get("leads") or {}
            prop = visit.get("properties") or {}
            event = build_visit_event(
                visit["scheduled_at"],
                property_title=prop.get("title"),
                property_reference=prop.get("reference"),
                property_address=", ".join(p for p in (prop.get("address"), prop.get("municipality")) if p),
                client_name=lead.get("name"),
                client_email=lead.get("email"),
                client_phone=lead.get("phone"),
                notes=visit.get("notes"),
            )
            event_id = self._insert_event(access_token, event)
            if not event_id:
                continue
            try:
                self.supabase.table("visits")\
                    .update({"google_event_id": event_id})\
                    .eq("id", visit["id"])\
                    .execute()
                synced += 1
            except Exception as e:
                logger.error(f"Error saving event id for visit {visit['id']}: {e}")

        logger.info(f"Synced {synced}/{len(visits)} visit(s) to Google Calendar for {user_id}")
        return CalendarBulkSyncResponse(message="Sync completed", synced=synced)
