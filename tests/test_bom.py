"""
Bills of materials: creation rules, costing and requirement resolution
"""
import pytest

from mfgflow.core.exceptions import ConflictError, NotFoundError, ValidationError
from mfgflow.schemas.bom import BOMCreate, BOMUpdate, BOMComponentCreate
from mfgflow.services import BOMService


@pytest.fixture
def chair(make_product, make_bom):
    seat = make_product("Seat", unit_cost=30)
    leg = make_product("Leg", unit_cost=5)
    chair = make_product("Chair", type="FINISHED_GOOD", unit_cost=80)
    bom = make_bom(chair, [(seat, 1), (leg, 4)])
    return {"bom": bom, "seat": seat, "leg": leg, "chair": chair}


class TestResolve:

    @pytest.mark.parametrize("quantity", [1, 2, 7])
    def test_requirements_scale_linearly(self, db, chair, quantity):
        requirements = BOMService.resolve_bom(db, chair["bom"].id, quantity)

        assert [r["required"] for r in requirements] == [1 * quantity, 4 * quantity]
        assert [r["quantity_per_unit"] for r in requirements] == [1, 4]

    def test_requirements_keep_component_order(self, db, chair):
        requirements = BOMService.resolve_bom(db, chair["bom"].id, 1)
        assert [r["product_id"] for r in requirements] == [chair["seat"].id, chair["leg"].id]

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity_rejected(self, db, chair, quantity):
        with pytest.raises(ValidationError):
            BOMService.resolve_bom(db, chair["bom"].id, quantity)

    def test_bom_without_components(self, db, make_product, make_bom):
        product = make_product("Sticker", type="FINISHED_GOOD")
        bom = make_bom(product, [])
        assert BOMService.resolve_bom(db, bom.id, 3) == []

    def test_unknown_bom(self, db):
        with pytest.raises(NotFoundError):
            BOMService.resolve_bom(db, 404, 1)


class TestBOMRules:

    def test_create_with_components(self, db, make_product):
        steel = make_product("Steel Sheet", unit_cost=12)
        box = make_product("Tool Box", type="FINISHED_GOOD")

        bom = BOMService.create_bom(db, BOMCreate(
            product_id=box.id,
            reference="BOM-BOX",
            components=[BOMComponentCreate(product_id=steel.id, quantity=3, cost=12)]
        ))

        assert bom.is_active is True
        assert len(bom.components) == 1
        assert bom.components[0].total == 36

    def test_second_active_bom_rejected(self, db, chair):
        with pytest.raises(ConflictError):
            BOMService.create_bom(db, BOMCreate(product_id=chair["chair"].id))

    def test_duplicate_component_rejected(self, db, make_product):
        part = make_product("Frame")
        product = make_product("Bike", type="FINISHED_GOOD")
        with pytest.raises(ValidationError):
            BOMService.create_bom(db, BOMCreate(product_id=product.id, components=[
                BOMComponentCreate(product_id=part.id, quantity=1),
                BOMComponentCreate(product_id=part.id, quantity=2),
            ]))

    def test_add_existing_component_rejected(self, db, chair):
        with pytest.raises(ConflictError):
            BOMService.add_component(db, chair["bom"].id, BOMComponentCreate(product_id=chair["leg"].id, quantity=2))

    def test_update_replaces_components(self, db, chair, make_product):
        cushion = make_product("Cushion", unit_cost=8)
        bom = BOMService.update_bom(db, chair["bom"].id, BOMUpdate(
            components=[BOMComponentCreate(product_id=cushion.id, quantity=2, cost=8)]
        ))
        assert [c.product_id for c in bom.components] == [cushion.id]

    def test_bom_in_use_cannot_be_deleted(self, db, chair, make_mo):
        make_mo(chair["chair"], 2, chair["bom"])
        with pytest.raises(ConflictError):
            BOMService.delete_bom(db, chair["bom"].id)

    def test_cost_sums_component_lines(self, db, chair):
        result = BOMService.calculate_bom_cost(db, chair["bom"].id)
        assert result["total_cost"] == 30 + 4 * 5


class TestBOMAPI:

    def test_resolve_endpoint(self, client, owner_headers, chair):
        res = client.get(f"/api/boms/{chair['bom'].id}/resolve", headers=owner_headers, params={"quantity": 3})
        assert res.status_code == 200
        assert [c["required"] for c in res.json()["components"]] == [3, 12]

    def test_resolve_zero_quantity(self, client, owner_headers, chair):
        res = client.get(f"/api/boms/{chair['bom'].id}/resolve", headers=owner_headers, params={"quantity": 0})
        assert res.status_code == 400
        assert res.json()["error"] == "VALIDATION_ERROR"

    def test_cost_endpoint(self, client, owner_headers, chair):
        res = client.get(f"/api/boms/{chair['bom'].id}/cost", headers=owner_headers)
        assert res.json()["total_cost"] == 50.0

    def test_operator_cannot_create(self, client, make_user, auth_headers, make_product):
        operator = make_user("OPERATOR")
        product = make_product("Lamp", type="FINISHED_GOOD")
        res = client.post("/api/boms", headers=auth_headers(operator), json={"product_id": product.id})
        assert res.status_code == 403
