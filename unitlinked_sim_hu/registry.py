"""Product identifier → product dispatch."""

from enum import StrEnum

from unitlinked_sim_hu.params import SimulationParams
from unitlinked_sim_hu.products import (
    AlfaFortis,
    AllianzEletprogram,
    DmPro,
    GeneraliKabalaU91,
    NnMotiva158,
    Product,
)
from unitlinked_sim_hu.simulation import SimulationResult


class ProductId(StrEnum):
    DM_PRO = DmPro.ID
    ALLIANZ_ELETPROGRAM = AllianzEletprogram.ID
    ALFA_FORTIS = AlfaFortis.ID
    GENERALI_KABALA_U91 = GeneraliKabalaU91.ID
    NN_MOTIVA_158 = NnMotiva158.ID


PRODUCTS: dict[ProductId, Product] = {
    ProductId.DM_PRO: DmPro(),
    ProductId.ALLIANZ_ELETPROGRAM: AllianzEletprogram(),
    ProductId.ALFA_FORTIS: AlfaFortis(),
    ProductId.GENERALI_KABALA_U91: GeneraliKabalaU91(),
    ProductId.NN_MOTIVA_158: NnMotiva158(),
}


class UnknownProductError(ValueError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        self.known_ids = [p.value for p in ProductId]
        super().__init__(f"Ismeretlen termék: {product_id!r} (ismert: {', '.join(self.known_ids)})")


def get_product(product_id: str) -> Product:
    """Look up a product by identifier. Raises UnknownProductError if not registered."""
    try:
        return PRODUCTS[ProductId(product_id)]
    except ValueError:
        raise UnknownProductError(product_id) from None


def calculate(product_id: str, params: SimulationParams) -> SimulationResult:
    return get_product(product_id).calculate(params)
