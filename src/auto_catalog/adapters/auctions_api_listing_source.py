"""Auctions API implementation of ListingSource.

The upstream answers ``GET /cars?page=N&per_page=M`` with
``{"data": [...], "meta": {"current_page", "last_page", "total"}}``.
Everything in the body is treated as untrusted: missing or malformed fields
default to safe values and single bad records are skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from types import TracebackType
from typing import Any

import httpx

from auto_catalog.domain.errors import FetchError, MalformedUpstreamRecordError
from auto_catalog.domain.listing import Listing
from auto_catalog.infra.settings import SourceSettings
from auto_catalog.ports.listing_source import ListingSource, SourcePage

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100


# ==============================================================================
# Defensive coercion
# ==============================================================================


def to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(Decimal(str(value).strip().replace(",", "")))
    except (InvalidOperation, ValueError, OverflowError):
        return None


def to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip().replace(",", ""))
        if not number.is_finite():
            return None
        return number.quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        return None


def to_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _name(value: Any) -> str | None:
    # Upstream sends either {"id": .., "name": ".."} or a bare string
    if isinstance(value, Mapping):
        value = value.get("name")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _first_lot(record: Mapping[str, Any]) -> Mapping[str, Any]:
    lots = record.get("lots")
    if isinstance(lots, list) and lots and isinstance(lots[0], Mapping):
        return lots[0]
    return {}


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def normalize_listing(record: Any) -> Listing:
    """
    Normalize one upstream record into a Listing.

    Numeric and date fields become None when they cannot be parsed.

    Raises:
        MalformedUpstreamRecordError: If the record is not an object or has no id
    """
    if not isinstance(record, Mapping):
        raise MalformedUpstreamRecordError(
            "Upstream record is not an object", record_type=type(record).__name__
        )

    raw_id = _first_present(record.get("id"), record.get("lot_number"))
    listing_id = str(raw_id).strip() if raw_id is not None else ""
    if not listing_id or isinstance(raw_id, bool):
        raise MalformedUpstreamRecordError("Upstream record has no identifier")

    lot = _first_lot(record)
    odometer = lot.get("odometer")
    odometer_km = odometer.get("km") if isinstance(odometer, Mapping) else None

    year = to_int(record.get("year"))
    if year is not None and not MIN_YEAR <= year <= MAX_YEAR:
        year = None

    price = to_decimal(_first_present(lot.get("buy_now"), lot.get("bid"), record.get("price")))
    if price is not None and price < 0:
        price = None

    mileage = to_int(_first_present(odometer_km, record.get("mileage")))
    if mileage is not None and mileage < 0:
        mileage = None

    make = _name(record.get("manufacturer")) or _name(record.get("make"))
    model = _name(record.get("model"))
    title = _name(record.get("title")) or " ".join(
        part for part in (make, model, str(year) if year else None) if part
    ) or None

    return Listing(
        id=listing_id,
        make=make,
        model=model,
        title=title,
        year=year,
        price=price,
        mileage_km=mileage,
        listed_at=to_datetime(_first_present(record.get("created_at"), record.get("listed_at"))),
        payload=dict(record),
    )


# ==============================================================================
# HTTP source
# ==============================================================================


class AuctionsApiListingSource(ListingSource):
    def __init__(
        self,
        settings: SourceSettings,
        *,
        extra_params: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._extra_params = dict(extra_params or {})

        headers = {
            "Accept": "application/json",
            "User-Agent": settings.user_agent,
        }
        if settings.api_key:
            headers["X-API-Key"] = settings.api_key
            headers["Authorization"] = f"Bearer {settings.api_key}"

        # Timeout applies per request, independent of the run's own budget
        self._client = httpx.Client(
            base_url=settings.base_url,
            timeout=httpx.Timeout(settings.request_timeout_s),
            headers=headers,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AuctionsApiListingSource:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def fetch_page(self, page: int) -> SourcePage:
        body = self._get_json(page)

        data = body.get("data") if isinstance(body, Mapping) else None
        records = data if isinstance(data, list) else []
        meta = body.get("meta") if isinstance(body, Mapping) else None
        meta = meta if isinstance(meta, Mapping) else {}

        listings: list[Listing] = []
        skipped = 0
        for record in records:
            try:
                listings.append(normalize_listing(record))
            except MalformedUpstreamRecordError as exc:
                skipped += 1
                logger.warning(
                    "Skipping malformed upstream record",
                    extra={"page": page, "error": exc.message, **exc.context},
                )

        current_page = to_int(meta.get("current_page"))
        last_page = to_int(meta.get("last_page"))
        total = to_int(meta.get("total"))
        if total is not None and total < 0:
            total = None

        if current_page is not None and last_page is not None:
            has_more = current_page < last_page
        else:
            has_more = len(records) > 0

        return SourcePage(
            page=page,
            listings=listings,
            raw_count=len(records),
            skipped=skipped,
            has_more=has_more,
            current_page=current_page,
            last_page=last_page,
            total=total,
        )

    def _get_json(self, page: int) -> Any:
        params: dict[str, Any] = {
            **self._extra_params,
            "page": page,
            "per_page": self._settings.per_page,
        }

        try:
            response = self._client.get("/cars", params=params)
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timeout fetching page {page}: {exc}", page=page) from exc
        except httpx.TransportError as exc:
            raise FetchError(f"Transport error fetching page {page}: {exc}", page=page) from exc

        if response.status_code >= 400:
            raise FetchError(
                f"HTTP {response.status_code} fetching page {page}",
                page=page,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(
                f"Invalid JSON body for page {page}",
                page=page,
                status_code=response.status_code,
            ) from exc
