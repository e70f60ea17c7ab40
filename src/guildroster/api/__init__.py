"""REST API for the guild roster."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException

from guildroster.api.schemas import (
    ApplyUpdateResponse,
    EnrichmentResponse,
    MemberSpecRequest,
    MemberSpecResponse,
    MergeChangeResponse,
    MergePreviewRequest,
    MergePreviewResponse,
    RosterDataResponse,
    RosterQueryRequest,
    RosterQueryResponse,
    SaveRosterRequest,
    SaveRosterResponse,
    UpdateCheckResponse,
)
from guildroster.config import RosterSettings
from guildroster.errors import RaiderIOError, RosterError, RosterValidationError
from guildroster.ingest import (
    MergePreview,
    RaiderIOClient,
    coerce_members,
    merge_preview_from_json,
    parse_export,
    reconcile,
)
from guildroster.models import RosterData
from guildroster.persistence import build_store
from guildroster.query import RosterFilter, apply_filters, class_counts, role_counts, sort_members
from guildroster.service import RosterService


logger = logging.getLogger(__name__)

RaiderIOFactory = Callable[[RosterSettings], RaiderIOClient]


def _default_raiderio_factory(settings: RosterSettings) -> RaiderIOClient:
    return RaiderIOClient(
        settings.raiderio_api_key or "",
        region=settings.raiderio_region,
        realm=settings.raiderio_realm,
        guild=settings.raiderio_guild,
    )


def _roster_to_response(data: RosterData) -> RosterDataResponse:
    payload = data.to_json()
    return RosterDataResponse(
        version=payload["version"],
        last_updated=payload["lastUpdated"],
        members=payload["members"],
    )


def _preview_to_response(preview: MergePreview) -> MergePreviewResponse:
    return MergePreviewResponse(
        merged=[member.to_json() for member in preview.merged],
        roles_preserved=preview.roles_preserved,
        new_players=preview.new_players,
        changes=[
            MergeChangeResponse(
                name=change.name,
                class_file_name=change.class_file_name,
                message=change.message,
            )
            for change in preview.changes
        ],
        last_updated=preview.last_updated,
    )


def create_app(
    settings: Optional[RosterSettings] = None,
    *,
    raiderio_factory: Optional[RaiderIOFactory] = None,
) -> FastAPI:
    settings = settings or RosterSettings.from_env()
    app = FastAPI(title="guildroster")
    service = RosterService(build_store(settings), settings.export_path)
    app.state.settings = settings
    app.state.roster_service = service
    make_raiderio = raiderio_factory or _default_raiderio_factory

    def _load_roster() -> RosterData:
        try:
            return service.get_roster()
        except RosterError as exc:
            logger.warning("Error loading roster: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to load roster data") from exc

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/roster", response_model=RosterDataResponse)
    async def get_roster() -> RosterDataResponse:
        return _roster_to_response(_load_roster())

    @app.put("/roster", response_model=SaveRosterResponse)
    async def save_roster(payload: SaveRosterRequest) -> SaveRosterResponse:
        result = service.save_roster(payload.members, payload.last_updated)
        return SaveRosterResponse(**asdict(result))

    @app.get("/roster/updates", response_model=UpdateCheckResponse)
    async def check_for_updates() -> UpdateCheckResponse:
        return UpdateCheckResponse(**asdict(service.check_for_updates()))

    @app.post("/roster/updates", response_model=ApplyUpdateResponse)
    async def apply_update() -> ApplyUpdateResponse:
        return ApplyUpdateResponse(**asdict(service.apply_update()))

    @app.post("/roster/merge-preview", response_model=MergePreviewResponse)
    async def merge_preview(payload: MergePreviewRequest) -> MergePreviewResponse:
        current = _load_roster()
        if payload.lua is not None:
            parsed = parse_export(payload.lua)
            if not parsed.ok:
                raise HTTPException(status_code=400, detail=parsed.message)
            try:
                imported = coerce_members(parsed.members)
            except RosterValidationError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
            preview = reconcile(
                current.members,
                imported,
                last_updated=payload.last_updated,
                fallback_last_updated=current.last_updated,
            )
        elif payload.json_text is not None:
            preview, error = merge_preview_from_json(
                current.members,
                payload.json_text,
                last_updated=payload.last_updated,
                fallback_last_updated=current.last_updated,
            )
            if preview is None:
                raise HTTPException(status_code=400, detail=error)
        else:
            raise HTTPException(status_code=400, detail="Provide jsonText or lua")
        return _preview_to_response(preview)

    @app.post("/roster/members/{name}/spec", response_model=MemberSpecResponse)
    async def update_member_spec(name: str, payload: MemberSpecRequest) -> MemberSpecResponse:
        result = service.update_member_spec(name, payload.main_spec, payload.main_role)
        if result.not_found:
            raise HTTPException(status_code=404, detail="Member not found")
        if not result.success:
            raise HTTPException(status_code=400, detail=result.error)
        return MemberSpecResponse(
            success=True,
            member=result.member.to_json() if result.member else None,
        )

    @app.post("/roster/query", response_model=RosterQueryResponse)
    async def query_roster(payload: RosterQueryRequest) -> RosterQueryResponse:
        members = _load_roster().members
        filters = [
            RosterFilter(id=f.id, field=f.field, operator=f.operator, value=f.value)
            for f in payload.filters
        ]
        filtered = (
            apply_filters(members, filters, payload.match_all)
            if payload.filters_enabled
            else list(members)
        )
        ordered = sort_members(filtered, payload.sort_key, payload.sort_direction)
        return RosterQueryResponse(
            total=len(members),
            matched=len(ordered),
            role_counts=role_counts(ordered),
            class_counts=class_counts(ordered),
            members=[member.to_json() for member in ordered],
        )

    @app.post("/roster/raiderio", response_model=EnrichmentResponse)
    async def apply_raiderio() -> EnrichmentResponse:
        try:
            client = make_raiderio(settings)
        except RaiderIOError as exc:
            return EnrichmentResponse(success=False, error=str(exc))
        with client:
            result = service.apply_raiderio(client)
        return EnrichmentResponse(**asdict(result))

    return app


__all__ = ["create_app"]
