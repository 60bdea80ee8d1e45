"""NHTSA vPIC lookups backing the quote form's model picker."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from abex_transport.models.schemas import VehicleModel

logger = logging.getLogger("abex_transport.catalog")

EARLIEST_MODEL_YEAR = 1981


class VehicleCatalog:
    def __init__(self, base_url: str, client: httpx.AsyncClient) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client

    @classmethod
    def from_settings(cls, settings) -> VehicleCatalog:
        return cls(settings.nhtsa_base_url, httpx.AsyncClient(timeout=settings.nhtsa_timeout_seconds))

    async def models_for(self, make: str, year: int) -> list[VehicleModel]:
        url = f"{self.base_url}/vehicles/GetModelsForMakeYear/make/{quote(make, safe='')}/modelyear/{year}"
        try:
            response = await self._client.get(url, params={"format": "json"})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("vehicle_models_lookup_failed make=%s year=%s error=%s", make, year, str(exc))
            return []

        results = payload.get("Results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            logger.warning("vehicle_models_unexpected_payload make=%s year=%s", make, year)
            return []

        models: list[VehicleModel] = []
        for item in results:
            if not isinstance(item, dict) or not item.get("Model_Name"):
                continue
            try:
                models.append(
                    VehicleModel(
                        make_id=item.get("Make_ID"),
                        make_name=item.get("Make_Name") or make,
                        model_id=item.get("Model_ID"),
                        model_name=item["Model_Name"],
                    )
                )
            except ValidationError:
                logger.warning("vehicle_model_skipped make=%s year=%s item=%s", make, year, item)
        return models

    async def aclose(self) -> None:
        await self._client.aclose()
