"""Linking products to discount codes for automatic application."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.discount.discount import DiscountCode, ProductDiscountLink
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ProductDiscountLink")
class LinkProductDiscount:
    product_id = Identifier(required=True)
    discount_id = Identifier(required=True)


@ordering.command(part_of="ProductDiscountLink")
class UnlinkProductDiscount:
    product_id = Identifier(required=True)
    discount_id = Identifier(required=True)


@ordering.command_handler(part_of=ProductDiscountLink)
class ProductDiscountLinkHandler:
    @handle(LinkProductDiscount)
    def link_product(self, command):
        # Raises ObjectNotFoundError for an unknown code
        discount = current_domain.repository_for(DiscountCode).get(command.discount_id)

        repo = current_domain.repository_for(ProductDiscountLink)
        existing = repo.find_link(command.product_id, discount.id)
        if existing is not None:
            return str(existing.id)

        link = ProductDiscountLink.create(product_id=command.product_id, discount_code_id=str(discount.id))
        repo.add(link)

        logger.info("Product linked to discount", product_id=str(command.product_id), code=discount.code)
        return str(link.id)

    @handle(UnlinkProductDiscount)
    def unlink_product(self, command):
        repo = current_domain.repository_for(ProductDiscountLink)
        link = repo.find_link(command.product_id, command.discount_id)
        if link is None:
            raise ValidationError({"product_id": ["Product is not linked to this discount code"]})

        repo._dao.delete(link)
        logger.info("Product unlinked from discount", product_id=str(command.product_id))
