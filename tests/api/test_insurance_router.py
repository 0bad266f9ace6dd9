"""Unit tests for insurer API routes."""

import unittest
from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from x402guard.api.insurance_api.dependencies import get_insurance_service
from x402guard.api.insurance_api.routers.insurance import router
from x402guard.application.insurance.dtos import (
    MAX_AMOUNT_UNITS,
    ClaimabilityDTO,
    InsurancePolicyResponseDTO,
    ProviderStatsDTO,
)
from x402guard.domain.errors import (
    InvalidPolicyTransitionError,
    InvalidSignatureError,
    PolicyAlreadyExistsError,
    PolicyNotFoundError,
    UnauthorizedPolicyActorError,
)
from x402guard.domain.insurance.entities import InsuranceStatus

COMMITMENT = "0x" + "ab" * 32
CLIENT = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PROVIDER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
ESCROW = "0x5fbdb2315678afecb367f032d93f642f64180aa3"


class TestInsuranceRouter(unittest.TestCase):
    """Test cases for insurance router."""

    def setUp(self):
        self.app = FastAPI()
        self.app.include_router(router)

        self.policy = InsurancePolicyResponseDTO(
            request_commitment=COMMITMENT,
            client=CLIENT,
            provider=PROVIDER,
            payment_amount=10000,
            insurance_fee=100,
            deadline=1_700_000_060,
            status=InsuranceStatus.PENDING,
            status_name="Pending",
            time_left=60,
            created_at=1_700_000_000,
        )
        self.purchase_body = {
            "request_commitment": COMMITMENT,
            "client": CLIENT,
            "provider": PROVIDER,
            "payment_amount": 10000,
            "insurance_fee": 100,
            "timeout_minutes": 1,
            "client_signature": "0x" + "11" * 65,
            "escrow_address": ESCROW,
            "payment_receipt": "0x" + "44" * 65,
        }

        self.mock_service = AsyncMock()
        self.app.dependency_overrides[get_insurance_service] = (
            lambda: self.mock_service
        )

        self.client = TestClient(self.app)

    def tearDown(self):
        self.app.dependency_overrides.clear()

    def test_purchase_insurance_success(self):
        self.mock_service.purchase_insurance.return_value = self.policy

        response = self.client.post("/insurance/policies", json=self.purchase_body)

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["request_commitment"], COMMITMENT)
        self.assertEqual(response.json()["status"], 0)
        self.assertEqual(response.json()["status_name"], "Pending")

    def test_purchase_insurance_duplicate(self):
        self.mock_service.purchase_insurance.side_effect = PolicyAlreadyExistsError(
            "Policy already exists"
        )

        response = self.client.post("/insurance/policies", json=self.purchase_body)

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"], "Policy already exists")

    def test_purchase_insurance_validation_error(self):
        response = self.client.post(
            "/insurance/policies", json={"request_commitment": COMMITMENT}
        )

        self.assertEqual(response.status_code, 422)
        self.mock_service.purchase_insurance.assert_not_called()

    def test_purchase_insurance_storage_failure(self):
        self.mock_service.purchase_insurance.side_effect = ConnectionError(
            "Redis unavailable"
        )

        response = self.client.post("/insurance/policies", json=self.purchase_body)

        self.assertEqual(response.status_code, 500)
        self.assertIn("Redis unavailable", response.json()["detail"])

    def test_purchase_insurance_requires_payment_receipt(self):
        body = {k: v for k, v in self.purchase_body.items() if k != "payment_receipt"}

        response = self.client.post("/insurance/policies", json=body)

        self.assertEqual(response.status_code, 422)
        self.mock_service.purchase_insurance.assert_not_called()

    def test_purchase_insurance_with_forged_receipt(self):
        self.mock_service.purchase_insurance.side_effect = InvalidSignatureError(
            "Signature recovered 0xabc, expected provider"
        )

        response = self.client.post("/insurance/policies", json=self.purchase_body)

        self.assertEqual(response.status_code, 400)

    def test_purchase_insurance_amount_too_large(self):
        body = dict(self.purchase_body, payment_amount=MAX_AMOUNT_UNITS + 1)

        response = self.client.post("/insurance/policies", json=body)

        self.assertEqual(response.status_code, 422)
        self.mock_service.purchase_insurance.assert_not_called()

    def test_confirm_service_by_wrong_actor(self):
        self.mock_service.confirm_service.side_effect = UnauthorizedPolicyActorError(
            "Only the provider can confirm service"
        )

        response = self.client.post(
            f"/insurance/policies/{COMMITMENT}/confirmation",
            json={"provider": CLIENT, "provider_signature": "0x" + "22" * 65},
        )

        self.assertEqual(response.status_code, 400)

    def test_can_claim_insurance(self):
        self.mock_service.can_claim_insurance.return_value = ClaimabilityDTO(
            request_commitment=COMMITMENT, can_claim=False, time_left=12
        )

        response = self.client.get(f"/insurance/policies/{COMMITMENT}/claimable")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["can_claim"])
        self.assertEqual(response.json()["time_left"], 12)

    def test_can_claim_insurance_unknown_policy(self):
        self.mock_service.can_claim_insurance.side_effect = PolicyNotFoundError(
            "Policy not found"
        )

        response = self.client.get(f"/insurance/policies/{COMMITMENT}/claimable")

        self.assertEqual(response.status_code, 404)

    def test_claim_insurance_success(self):
        claimed = self.policy.model_copy(
            update={
                "status": InsuranceStatus.CLAIMED,
                "status_name": "Claimed",
                "payout": 10000,
                "resolved_at": 1_700_000_061,
            }
        )
        self.mock_service.claim_insurance.return_value = claimed

        response = self.client.post(
            f"/insurance/policies/{COMMITMENT}/claim",
            json={"claimer": CLIENT, "claimer_signature": "0x" + "33" * 65},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], 2)
        self.assertEqual(response.json()["payout"], 10000)

    def test_claim_insurance_after_confirmation(self):
        self.mock_service.claim_insurance.side_effect = InvalidPolicyTransitionError(
            "Policy is not pending"
        )

        response = self.client.post(
            f"/insurance/policies/{COMMITMENT}/claim",
            json={"claimer": CLIENT, "claimer_signature": "0x" + "33" * 65},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Policy is not pending")

    def test_get_claim_details_unknown_policy(self):
        self.mock_service.get_claim_details.side_effect = PolicyNotFoundError(
            "Policy not found"
        )

        response = self.client.get(f"/insurance/policies/{COMMITMENT}")

        self.assertEqual(response.status_code, 404)

    def test_get_provider_stats(self):
        self.mock_service.get_provider_stats.return_value = ProviderStatsDTO(
            provider=PROVIDER,
            bond_balance=40_000,
            min_bond=50_000,
            is_healthy=False,
            premiums_held=300,
        )

        response = self.client.get(f"/insurance/providers/{PROVIDER}")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["is_healthy"])
        self.assertEqual(response.json()["premiums_held"], 300)
        self.mock_service.get_provider_stats.assert_awaited_once_with(PROVIDER)

    def test_deposit_bond_rejects_non_positive_amount(self):
        response = self.client.post(
            f"/insurance/providers/{PROVIDER}/bond", json={"amount": 0}
        )

        self.assertEqual(response.status_code, 422)
        self.mock_service.deposit_bond.assert_not_called()

    def test_deposit_bond(self):
        self.mock_service.deposit_bond.return_value = ProviderStatsDTO(
            provider=PROVIDER, bond_balance=60_000, min_bond=50_000, is_healthy=True
        )

        response = self.client.post(
            f"/insurance/providers/{PROVIDER}/bond", json={"amount": 20_000}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["bond_balance"], 60_000)
        self.mock_service.deposit_bond.assert_awaited_once_with(PROVIDER, 20_000)


if __name__ == "__main__":
    unittest.main()
