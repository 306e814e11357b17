"""Unit tests for quote status changes and the deal-stage sync."""

import json
import re
from unittest.mock import AsyncMock

import pytest

from insura_ops.schemas.common import ServiceResult
from insura_ops.schemas.enums import DealStage, QuoteStatus
from insura_ops.services import create_services
from insura_ops.services.deal_service import stage_for_quote_transition
from insura_ops.services.quote_service import QuoteService


@pytest.fixture
def quote(fake_backend, company):
    return fake_backend.seed(
        "quotes",
        company_id=company["id"],
        quote_number="Q-1700000000000-ABC123",
        product_type="group_medical",
        premium=12000,
        employee_count=40,
        status="sent",
    )


@pytest.fixture
def linked_deal(fake_backend, company, quote):
    return fake_backend.seed(
        "deals", company_id=company["id"], quote_id=quote["id"], name="Acme medical", stage="quote", probability=60
    )


class TestStageTable:
    @pytest.mark.parametrize(
        "new_status,stage",
        [
            (QuoteStatus.PENDING, DealStage.QUOTE),
            (QuoteStatus.SENT, DealStage.QUOTE),
            (QuoteStatus.APPROVED, DealStage.NEGOTIATION),
            (QuoteStatus.ACCEPTED, DealStage.CLOSED_WON),
            (QuoteStatus.REJECTED, DealStage.CLOSED_LOST),
            (QuoteStatus.EXPIRED, DealStage.CLOSED_LOST),
            (QuoteStatus.DRAFT, None),
        ],
    )
    def test_new_status_mapping(self, new_status, stage):
        assert stage_for_quote_transition(QuoteStatus.SENT, new_status) == stage

    @pytest.mark.parametrize("new_status", [QuoteStatus.DRAFT, QuoteStatus.PENDING, QuoteStatus.SENT])
    def test_reopening_an_accepted_quote(self, new_status):
        assert stage_for_quote_transition(QuoteStatus.ACCEPTED, new_status) == DealStage.NEGOTIATION

    @pytest.mark.parametrize("old_status", [QuoteStatus.REJECTED, QuoteStatus.EXPIRED])
    @pytest.mark.parametrize("new_status", [QuoteStatus.DRAFT, QuoteStatus.PENDING, QuoteStatus.SENT])
    def test_reopening_a_lost_quote_revives_the_deal(self, old_status, new_status):
        assert stage_for_quote_transition(old_status, new_status) == DealStage.QUOTE

    def test_accepts_plain_values(self):
        assert stage_for_quote_transition("draft", "approved") == DealStage.NEGOTIATION


class TestUpdateQuoteStatus:
    @pytest.mark.asyncio
    async def test_status_change_writes_once_each(self, fake_backend, anon_client, quote, linked_deal):
        services = create_services(anon_client)

        result = await services.quotes.update_quote_status(quote["id"], QuoteStatus.APPROVED, user_id="admin-1")

        assert result.success
        assert result.data.status == QuoteStatus.APPROVED
        assert len(fake_backend.calls("PATCH", "/rest/v1/quotes")) == 1
        assert len(fake_backend.calls("POST", "/rest/v1/activities")) == 1
        assert len(fake_backend.calls("PATCH", "/rest/v1/deals")) == 1

        activity = fake_backend.tables["activities"][0]
        assert activity["action"] == "status_changed"
        assert activity["old_value"] == {"status": "sent"}
        assert activity["new_value"] == {"status": "approved"}
        assert activity["user_id"] == "admin-1"

        deal = fake_backend.tables["deals"][0]
        assert deal["stage"] == "negotiation"
        assert deal["probability"] == 75

    @pytest.mark.asyncio
    async def test_same_status_writes_nothing(self, fake_backend, anon_client, quote, linked_deal):
        services = create_services(anon_client)

        result = await services.quotes.update_quote_status(quote["id"], QuoteStatus.SENT)

        assert result.success
        assert result.changed is False
        assert result.data.status == QuoteStatus.SENT
        assert fake_backend.calls("PATCH", "/rest/v1/quotes") == []
        assert fake_backend.calls("POST", "/rest/v1/activities") == []
        assert fake_backend.calls("PATCH", "/rest/v1/deals") == []

    @pytest.mark.asyncio
    async def test_deal_sync_targets_quote(self, fake_backend, anon_client, quote, linked_deal):
        await create_services(anon_client).quotes.update_quote_status(quote["id"], QuoteStatus.ACCEPTED)

        patch = fake_backend.calls("PATCH", "/rest/v1/deals")[0]
        assert patch.url.params["quote_id"] == f"eq.{quote['id']}"
        assert json.loads(patch.content) == {"stage": "closed_won", "probability": 100}

    @pytest.mark.asyncio
    async def test_reopening_a_rejected_quote_revives_its_deal(self, fake_backend, anon_client, quote, linked_deal):
        services = create_services(anon_client)
        await services.quotes.update_quote_status(quote["id"], QuoteStatus.REJECTED)
        assert fake_backend.tables["deals"][0]["stage"] == "closed_lost"

        result = await services.quotes.update_quote_status(quote["id"], QuoteStatus.SENT)

        assert result.changed is True
        deal = fake_backend.tables["deals"][0]
        assert deal["stage"] == "quote"
        assert deal["probability"] == 60

    @pytest.mark.asyncio
    async def test_draft_leaves_deals_alone(self, fake_backend, anon_client, quote, linked_deal):
        await create_services(anon_client).quotes.update_quote_status(quote["id"], QuoteStatus.DRAFT)

        assert fake_backend.calls("PATCH", "/rest/v1/deals") == []
        assert len(fake_backend.calls("POST", "/rest/v1/activities")) == 1

    @pytest.mark.asyncio
    async def test_missing_quote(self, fake_backend, anon_client):
        result = await create_services(anon_client).quotes.update_quote_status("missing", QuoteStatus.SENT)

        assert result.error.title == "Record Not Found"
        assert fake_backend.calls("POST", "/rest/v1/activities") == []

    @pytest.mark.asyncio
    async def test_collaborators_called_once(self, anon_client, quote):
        activities = AsyncMock()
        activities.log.return_value = ServiceResult.ok(None)
        deals = AsyncMock()
        deals.sync_stage_from_quote.return_value = ServiceResult.ok([])
        service = QuoteService(anon_client, activities=activities, deals=deals)

        await service.update_quote_status(quote["id"], QuoteStatus.REJECTED)

        activities.log.assert_awaited_once()
        deals.sync_stage_from_quote.assert_awaited_once_with(quote["id"], QuoteStatus.SENT, QuoteStatus.REJECTED)

    @pytest.mark.asyncio
    async def test_failed_side_effects_do_not_fail_the_update(self, fake_backend, anon_client, quote):
        del fake_backend.tables["activities"]

        result = await create_services(anon_client).quotes.update_quote_status(quote["id"], QuoteStatus.PENDING)

        assert result.success
        assert fake_backend.tables["quotes"][0]["status"] == "pending"


class TestCreateAndCopy:
    @pytest.mark.asyncio
    async def test_create_forces_draft_and_number(self, anon_client, company):
        result = await QuoteService(anon_client).create(
            {"company_id": company["id"], "product_type": "life", "premium": 500, "status": "accepted"}
        )

        assert result.data.status == QuoteStatus.DRAFT
        assert re.fullmatch(r"Q-\d{13}-[0-9A-F]{6}", result.data.quote_number)
        assert result.data.company_name == "Acme Logistics"

    @pytest.mark.asyncio
    async def test_copy_quote(self, fake_backend, anon_client, quote):
        result = await QuoteService(anon_client).copy_quote(quote["id"])

        assert result.success
        assert result.data.id != quote["id"]
        assert result.data.quote_number != quote["quote_number"]
        assert result.data.status == QuoteStatus.DRAFT
        assert result.data.premium == 12000
        assert len(fake_backend.tables["quotes"]) == 2
