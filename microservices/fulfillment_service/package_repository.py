"""
Package Repository

Data access layer for packages. One package per order is enforced by the
UNIQUE constraint on fulfillment.packages.order_id; a violation surfaces
as DuplicatePackageError.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import asyncpg

from core.postgres_client import PostgresClientWrapper
from .models import DispatchStatus, Package, PackageDraft, PackageStatus
from .protocols import DuplicatePackageError

logger = logging.getLogger(__name__)


class PackageRepository:
    """
    Repository for package data operations

    Tables:
        - fulfillment.packages: package records with dispatch tracking
    """

    def __init__(self, db: Optional[PostgresClientWrapper] = None):
        """Initialize Package Repository with PostgresClientWrapper"""
        self.db = db or PostgresClientWrapper("fulfillment_service")
        self.schema = "fulfillment"
        self.packages_table = "packages"

        logger.info("PackageRepository initialized with PostgresClient")

    async def create_package(self, draft: PackageDraft) -> Package:
        """Insert a package; DuplicatePackageError if the order already has one"""
        try:
            now = datetime.now(timezone.utc)
            query = f'''
                INSERT INTO "{self.schema}".{self.packages_table} (
                    external_company_id, order_id, to_name, to_phone, alter_phone,
                    description, package_type, village_id, street, total_cost,
                    note, barcode, status, dispatch_status, dispatch_attempts,
                    created_at, updated_at
                ) VALUES (
                    $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, 0, $15, $15
                )
                RETURNING *
            '''
            params = [
                draft.external_company_id,
                draft.order_id,
                draft.to_name,
                draft.to_phone,
                draft.alter_phone,
                draft.description,
                draft.package_type,
                draft.village_id,
                draft.street,
                draft.total_cost,
                draft.note,
                draft.barcode,
                PackageStatus.PENDING.value,
                DispatchStatus.NOT_ATTEMPTED.value,
                now,
            ]

            async with self.db:
                row = await self.db.query_row(query, params)

            return self._row_to_package(row)

        except asyncpg.exceptions.UniqueViolationError:
            logger.info(f"Package insert for order {draft.order_id} hit the unique constraint")
            raise DuplicatePackageError(draft.order_id)
        except Exception as e:
            logger.error(f"Failed to create package for order {draft.order_id}: {e}")
            raise

    async def get_package(self, package_id: int) -> Optional[Package]:
        """Get package by ID"""
        try:
            query = f'SELECT * FROM "{self.schema}".{self.packages_table} WHERE package_id = $1'

            async with self.db:
                result = await self.db.query_row(query, [package_id])

            return self._row_to_package(result) if result else None

        except Exception as e:
            logger.error(f"Failed to get package {package_id}: {e}")
            raise

    async def get_package_by_order(self, order_id: str) -> Optional[Package]:
        """Get the package for an order"""
        try:
            query = f'SELECT * FROM "{self.schema}".{self.packages_table} WHERE order_id = $1'

            async with self.db:
                result = await self.db.query_row(query, [order_id])

            return self._row_to_package(result) if result else None

        except Exception as e:
            logger.error(f"Failed to get package for order {order_id}: {e}")
            raise

    async def record_dispatch(
        self,
        package_id: int,
        dispatch_status: DispatchStatus,
        error: Optional[str] = None,
        status: Optional[PackageStatus] = None,
    ) -> Optional[Package]:
        """Record a dispatch attempt; a skipped dispatch does not count as one"""
        try:
            now = datetime.now(timezone.utc)
            update_data = {
                "dispatch_status": dispatch_status.value,
                "last_dispatch_error": error,
                "updated_at": now,
            }
            if status:
                update_data["status"] = status.value

            attempted = dispatch_status in (DispatchStatus.SUCCEEDED, DispatchStatus.FAILED)
            if attempted:
                update_data["last_dispatched_at"] = now

            set_clauses = []
            params = []
            for key, value in update_data.items():
                params.append(value)
                set_clauses.append(f"{key} = ${len(params)}")
            if attempted:
                set_clauses.append("dispatch_attempts = dispatch_attempts + 1")

            params.append(package_id)
            query = f'''
                UPDATE "{self.schema}".{self.packages_table}
                SET {", ".join(set_clauses)}
                WHERE package_id = ${len(params)}
                RETURNING *
            '''

            async with self.db:
                result = await self.db.query_row(query, params)

            return self._row_to_package(result) if result else None

        except Exception as e:
            logger.error(f"Failed to record dispatch for package {package_id}: {e}")
            raise

    def _row_to_package(self, row: Dict[str, Any]) -> Package:
        return Package.model_validate(dict(row))
