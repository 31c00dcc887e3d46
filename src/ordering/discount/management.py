"""Discount code administration: create, update, delete."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.discount.discount import DiscountCode, ProductDiscountLink
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="DiscountCode")
class CreateDiscountCode:
    code = String(required=True, max_length=50)
    discount_type = String(required=True, max_length=20)
    value = Float(required=True)
    min_order_amount = Float(default=0.0)
    max_uses = Integer()
    valid_from = DateTime()
    valid_until = DateTime()
    active = Boolean(default=True)
    created_by = String(max_length=255)


@ordering.command(part_of="DiscountCode")
class UpdateDiscountCode:
    discount_id = Identifier(required=True)
    code = String(max_length=50)
    discount_type = String(max_length=20)
    value = Float()
    min_order_amount = Float()
    max_uses = Integer()
    valid_from = DateTime()
    valid_until = DateTime()
    active = Boolean()
    clear_max_uses = Boolean(default=False)
    clear_valid_until = Boolean(default=False)


@ordering.command(part_of="DiscountCode")
class DeleteDiscountCode:
    discount_id = Identifier(required=True)


def _assert_code_available(repo, code, discount_id=None):
    existing = repo.find_by_code(code)
    if existing is not None and str(existing.id) != str(discount_id):
        raise ValidationError({"code": [f"Discount code {existing.code} already exists"]})


@ordering.command_handler(part_of=DiscountCode)
class DiscountCodeCommandHandler:
    @handle(CreateDiscountCode)
    def create_discount_code(self, command):
        repo = current_domain.repository_for(DiscountCode)
        _assert_code_available(repo, command.code)

        discount = DiscountCode.create(
            code=command.code,
            discount_type=command.discount_type,
            value=command.value,
            min_order_amount=command.min_order_amount,
            max_uses=command.max_uses,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            active=command.active if command.active is not None else True,
            created_by=command.created_by,
        )
        repo.add(discount)

        logger.info("Discount code created", discount_id=str(discount.id), code=discount.code)
        return str(discount.id)

    @handle(UpdateDiscountCode)
    def update_discount_code(self, command):
        repo = current_domain.repository_for(DiscountCode)
        discount = repo.get(command.discount_id)

        changes = {
            field_name: getattr(command, field_name)
            for field_name in (
                "code",
                "discount_type",
                "value",
                "min_order_amount",
                "max_uses",
                "valid_from",
                "valid_until",
                "active",
            )
            if getattr(command, field_name) is not None
        }
        if command.clear_max_uses:
            changes["max_uses"] = None
        if command.clear_valid_until:
            changes["valid_until"] = None
        if "code" in changes:
            _assert_code_available(repo, changes["code"], discount_id=discount.id)

        discount.update(**changes)
        repo.add(discount)

        logger.info("Discount code updated", discount_id=str(discount.id), fields=sorted(changes))

    @handle(DeleteDiscountCode)
    def delete_discount_code(self, command):
        repo = current_domain.repository_for(DiscountCode)
        discount = repo.get(command.discount_id)

        link_repo = current_domain.repository_for(ProductDiscountLink)
        links = link_repo.for_discount(discount.id)
        for link in links:
            link_repo._dao.delete(link)
        repo._dao.delete(discount)

        logger.info(
            "Discount code deleted",
            discount_id=str(discount.id),
            code=discount.code,
            links_removed=len(links),
        )
