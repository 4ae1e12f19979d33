"""
Directory Repository

Read access to the reference data the pipeline consumes: villages,
shipping regions, external carriers and the carrier settings row.
"""

import logging
from typing import List, Optional

from core.postgres_client import PostgresClientWrapper
from .models import CarrierSettings, ExternalCompany, ShippingRegion, Village

logger = logging.getLogger(__name__)


class DirectoryRepository:
    """
    Repository for directory data

    Tables:
        - fulfillment.villages
        - fulfillment.shipping_regions
        - fulfillment.external_companies
        - fulfillment.carrier_settings (single row, id = 1)
    """

    def __init__(self, db: Optional[PostgresClientWrapper] = None):
        self.db = db or PostgresClientWrapper("fulfillment_service")
        self.schema = "fulfillment"

        logger.info("DirectoryRepository initialized with PostgresClient")

    # Villages

    async def get_village(self, village_id: int) -> Optional[Village]:
        try:
            query = f'SELECT * FROM "{self.schema}".villages WHERE village_id = $1'
            async with self.db:
                result = await self.db.query_row(query, [village_id])
            return Village.model_validate(result) if result else None
        except Exception as e:
            logger.error(f"Failed to get village {village_id}: {e}")
            raise

    async def list_villages(self, active_only: bool = False) -> List[Village]:
        try:
            query = f'SELECT * FROM "{self.schema}".villages'
            if active_only:
                query += " WHERE is_active = TRUE"
            query += " ORDER BY village_id"
            async with self.db:
                rows = await self.db.query(query)
            return [Village.model_validate(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list villages: {e}")
            raise

    # Regions

    async def list_regions(self) -> List[ShippingRegion]:
        try:
            query = f'SELECT * FROM "{self.schema}".shipping_regions ORDER BY region_name'
            async with self.db:
                rows = await self.db.query(query)
            return [self._row_to_region(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list shipping regions: {e}")
            raise

    async def get_region(self, region_name: str) -> Optional[ShippingRegion]:
        try:
            query = f'SELECT * FROM "{self.schema}".shipping_regions WHERE region_name = $1'
            async with self.db:
                result = await self.db.query_row(query, [region_name])
            return self._row_to_region(result) if result else None
        except Exception as e:
            logger.error(f"Failed to get shipping region {region_name}: {e}")
            raise

    # Carriers

    async def get_active_company_by_name(self, company_name: str) -> Optional[ExternalCompany]:
        try:
            query = f'''
                SELECT * FROM "{self.schema}".external_companies
                WHERE company_name = $1 AND is_active = TRUE
            '''
            async with self.db:
                result = await self.db.query_row(query, [company_name])
            return ExternalCompany.model_validate(result) if result else None
        except Exception as e:
            logger.error(f"Failed to get carrier {company_name}: {e}")
            raise

    async def get_company(self, company_id: int) -> Optional[ExternalCompany]:
        try:
            query = f'SELECT * FROM "{self.schema}".external_companies WHERE company_id = $1'
            async with self.db:
                result = await self.db.query_row(query, [company_id])
            return ExternalCompany.model_validate(result) if result else None
        except Exception as e:
            logger.error(f"Failed to get carrier {company_id}: {e}")
            raise

    async def list_active_companies(self) -> List[ExternalCompany]:
        try:
            query = f'''
                SELECT * FROM "{self.schema}".external_companies
                WHERE is_active = TRUE
                ORDER BY created_at, company_id
            '''
            async with self.db:
                rows = await self.db.query(query)
            return [ExternalCompany.model_validate(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list carriers: {e}")
            raise

    async def get_carrier_settings(self) -> CarrierSettings:
        try:
            query = f'SELECT default_external_company_id FROM "{self.schema}".carrier_settings WHERE id = 1'
            async with self.db:
                result = await self.db.query_row(query)
            return CarrierSettings.model_validate(result) if result else CarrierSettings()
        except Exception as e:
            logger.error(f"Failed to get carrier settings: {e}")
            raise

    def _row_to_region(self, row) -> ShippingRegion:
        data = dict(row)
        data["village_ids"] = list(data.get("village_ids") or [])
        return ShippingRegion.model_validate(data)
