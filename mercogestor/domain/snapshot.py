"""
Contêiner de estado imutável com seletores puros.

Um ``Snapshot`` guarda produtos e movimentos num instante. Os seletores
(estoque, estoque baixo, validade próxima) são calculados sobre ele e as
mutações devolvem um novo snapshot, sem alterar o original. Os casos de
uso de relatório carregam um snapshot do store e consultam só por ele.

O formato serializado é o do backup: ``{version, savedAtISO, products,
movements}``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from mercogestor.domain import alertas, formulas
from mercogestor.domain.models import Movimento, Produto


VERSAO_SNAPSHOT = 1


def _agora_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Snapshot:
    products: Tuple[Produto, ...] = ()
    movements: Tuple[Movimento, ...] = ()
    saved_at: str = field(default_factory=_agora_iso)

    # ===== seletores =====

    def produto(self, product_id: str) -> Optional[Produto]:
        return next((p for p in self.products if p.id == product_id), None)

    def estoque_de(self, product_id: str) -> formulas.Numero:
        return formulas.estoque_de(product_id, self.movements)

    def estoque_baixo(self) -> List[Produto]:
        """Produtos com estoque menor ou igual ao mínimo (inclui esgotados)."""
        return [p for p in self.products if self.estoque_de(p.id) <= p.minimo]

    def perto_do_vencimento(self, dias: Any, referencia: Union[date, datetime, None] = None) -> List[Produto]:
        return [i.produto for i in alertas.relatorio_validade(self.products, self.movements, dias, referencia)]

    # ===== mutações (novo snapshot) =====

    def com_produto(self, produto: Produto) -> "Snapshot":
        return replace(self, products=self.products + (produto,), saved_at=_agora_iso())

    def atualiza_produto(self, product_id: str, **campos) -> "Snapshot":
        prods = tuple(replace(p, **campos) if p.id == product_id else p for p in self.products)
        return replace(self, products=prods, saved_at=_agora_iso())

    def sem_produto(self, product_id: str) -> "Snapshot":
        """Remove o produto e, em cascata, seus movimentos."""
        return replace(
            self,
            products=tuple(p for p in self.products if p.id != product_id),
            movements=tuple(m for m in self.movements if m.product_id != product_id),
            saved_at=_agora_iso(),
        )

    def com_movimento(self, movimento: Movimento) -> "Snapshot":
        # mais recente primeiro, como na listagem do cliente
        return replace(self, movements=(movimento,) + self.movements, saved_at=_agora_iso())

    def atualiza_movimento(self, movement_id: str, **campos) -> "Snapshot":
        movs = tuple(replace(m, **campos) if m.id == movement_id else m for m in self.movements)
        return replace(self, movements=movs, saved_at=_agora_iso())

    def sem_movimento(self, movement_id: str) -> "Snapshot":
        return replace(
            self,
            movements=tuple(m for m in self.movements if m.id != movement_id),
            saved_at=_agora_iso(),
        )

    # ===== serialização (backup) =====

    def to_payload(self) -> Dict[str, Any]:
        return {
            "version": VERSAO_SNAPSHOT,
            "savedAtISO": self.saved_at,
            "products": [p.to_dict() for p in self.products],
            "movements": [m.to_dict() for m in self.movements],
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> Optional["Snapshot"]:
        """Reconstrói o snapshot; payload sem listas válidas retorna ``None``."""
        if not isinstance(payload, dict):
            return None
        prods = payload.get("products")
        movs = payload.get("movements")
        if not isinstance(prods, list) or not isinstance(movs, list):
            return None
        return cls(
            products=tuple(Produto.from_doc(_Doc.of(p)) for p in prods),
            movements=tuple(Movimento.from_doc(_Doc.of(m)) for m in movs),
            saved_at=str(payload.get("savedAtISO") or _agora_iso()),
        )


@dataclass(frozen=True)
class _Doc:
    id: str
    dados: Dict[str, Any]

    @classmethod
    def of(cls, d: Dict[str, Any]) -> "_Doc":
        return cls(id=str(d.get("id") or ""), dados={k: v for k, v in d.items() if k != "id"})
