"""
HubSpot CRM client.
Fetches renewal deals together with their first associated contact and company.
Uses a private-app access token; no OAuth flow lives here.
"""

from app.config import settings
from app.features.renewals.domain.models import AssociatedCompany, Deal, PrimaryContact
from app.infrastructure.observability.logging import get_logger
from app.services.infrastructure.api_client import ApiClientError, BaseApiClient

logger = get_logger(__name__)

DEAL_PROPERTIES = [
    "dealname",
    "amount",
    "closedate",
    "dealstage",
    "pipeline",
    "product_line",
    "carrier_group",
    "client_name",
    "coverage_premium",
    "commission_amount",
    "commission_percent",
    "policy_limit",
    "hs_object_id",
]
CONTACT_PROPERTIES = ["firstname", "lastname", "email", "phone", "company", "hs_object_id"]
COMPANY_PROPERTIES = ["name", "domain", "industry", "city", "hs_object_id"]

PAGE_SIZE = 100
MAX_PAGES = 10
BATCH_READ_LIMIT = 100  # HubSpot batch/read input limit


class HubSpotError(ApiClientError):
    """HubSpot API error."""


class HubSpotNotConfiguredError(HubSpotError):
    """Raised when no HubSpot access token is available."""


class HubSpotClient(BaseApiClient):
    service_name = "HubSpot"
    error_class = HubSpotError
    error_mappings = {
        "401": "HubSpot token rejected. Please check the private app token.",
        "403": "HubSpot access denied. Please check app scopes.",
        "429": "Too many HubSpot requests. Please try again later.",
    }

    def __init__(self, access_token: str, base_url: str = "https://api.hubapi.com", client=None):
        if not access_token:
            raise HubSpotNotConfiguredError("HubSpot access token is not configured")
        super().__init__(access_token, client)
        self._base_url = base_url.rstrip("/")

    def _extract_error(self, error_data: dict) -> tuple[str, str]:
        return (
            str(error_data.get("category", "unknown")),
            error_data.get("message", "Unknown HubSpot API error"),
        )

    async def fetch_deals(self) -> list[Deal]:
        """
        Fetch deals with their first associated contact and company resolved.

        Returns:
            list[Deal]: Deals in CRM order

        Raises:
            HubSpotError: If any HubSpot call fails
        """
        records = await self._list_deal_records()

        contact_ids = {self._first_association(r, "contacts") for r in records} - {None}
        company_ids = {self._first_association(r, "companies") for r in records} - {None}

        contacts = {
            record_id: PrimaryContact.from_hubspot(record)
            for record_id, record in (
                await self._batch_read("contacts", contact_ids, CONTACT_PROPERTIES)
            ).items()
        }
        companies = {
            record_id: AssociatedCompany.from_hubspot(record)
            for record_id, record in (
                await self._batch_read("companies", company_ids, COMPANY_PROPERTIES)
            ).items()
        }

        deals = [
            Deal.from_hubspot(
                record,
                primary_contact=contacts.get(self._first_association(record, "contacts")),
                associated_company=companies.get(self._first_association(record, "companies")),
            )
            for record in records
        ]
        logger.info(
            "HubSpot deals fetched",
            deal_count=len(deals),
            contact_count=len(contacts),
            company_count=len(companies),
        )
        return deals

    async def _list_deal_records(self) -> list[dict]:
        url = f"{self._base_url}/crm/v3/objects/deals"
        records: list[dict] = []
        after: str | None = None

        for _ in range(MAX_PAGES):
            params = {
                "limit": PAGE_SIZE,
                "properties": ",".join(DEAL_PROPERTIES),
                "associations": "contacts,companies",
            }
            if after:
                params["after"] = after

            response = await self._request_with_retry("GET", url, params=params)
            data = self._handle_api_response(response, "list_deals")
            records.extend(data.get("results", []))

            after = (data.get("paging") or {}).get("next", {}).get("after")
            if not after:
                break

        return records

    async def _batch_read(
        self, object_type: str, ids: set[str], properties: list[str]
    ) -> dict[str, dict]:
        if not ids:
            return {}

        url = f"{self._base_url}/crm/v3/objects/{object_type}/batch/read"
        ordered_ids = sorted(ids)
        records: dict[str, dict] = {}

        for start in range(0, len(ordered_ids), BATCH_READ_LIMIT):
            chunk = ordered_ids[start : start + BATCH_READ_LIMIT]
            payload = {
                "properties": properties,
                "inputs": [{"id": record_id} for record_id in chunk],
            }
            response = await self._request_with_retry("POST", url, json=payload)
            data = self._handle_api_response(response, f"batch_read_{object_type}")
            records.update(
                {str(record["id"]): record for record in data.get("results", []) if "id" in record}
            )

        return records

    @staticmethod
    def _first_association(record: dict, object_type: str) -> str | None:
        # HubSpot does not document an order here; the first listed one wins
        results = ((record.get("associations") or {}).get(object_type) or {}).get("results") or []
        if not results:
            return None
        first_id = results[0].get("id")
        return str(first_id) if first_id is not None else None


def hubspot_client_from_settings() -> HubSpotClient | None:
    if not settings.hubspot_connected():
        logger.info("HubSpot not connected, deals will be empty")
        return None
    return HubSpotClient(settings.HUBSPOT_ACCESS_TOKEN, settings.HUBSPOT_API_BASE_URL)
