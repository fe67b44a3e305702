from datetime import date

from mercogestor.domain.models import Movimento, Produto
from mercogestor.domain.snapshot import Snapshot


def _snap():
    return Snapshot(
        products=(
            Produto(id="p1", nome="Arroz", unidade="kg", minimo=10),
            Produto(id="p2", nome="Leite", unidade="L", minimo=2),
        ),
        movements=(
            Movimento(id="m1", product_id="p1", tipo="in", quantidade=40, data_iso="2024-05-01"),
            Movimento(id="m2", product_id="p1", tipo="out", quantidade=35, data_iso="2024-05-02"),
            Movimento(id="m3", product_id="p2", tipo="in", quantidade=6, data_iso="2024-05-02",
                      validade_lote="2024-05-05"),
        ),
        saved_at="2024-05-02T12:00:00Z",
    )


def test_seletores():
    s = _snap()
    assert s.estoque_de("p1") == 5
    assert [p.nome for p in s.estoque_baixo()] == ["Arroz"]
    assert [p.nome for p in s.perto_do_vencimento(7, date(2024, 5, 2))] == ["Leite"]
    assert s.produto("nao-existe") is None


def test_mutacoes_nao_alteram_o_original():
    s = _snap()
    s2 = s.com_movimento(Movimento(id="m4", product_id="p1", tipo="in", quantidade=20, data_iso="2024-05-03"))
    assert s.estoque_de("p1") == 5
    assert s2.estoque_de("p1") == 25
    assert s2.movements[0].id == "m4"

    s3 = s2.atualiza_produto("p1", minimo=30)
    assert s3.produto("p1").minimo == 30
    assert s2.produto("p1").minimo == 10


def test_sem_produto_remove_movimentos_em_cascata():
    s = _snap().sem_produto("p1")
    assert [p.id for p in s.products] == ["p2"]
    assert all(m.product_id != "p1" for m in s.movements)


def test_atualiza_e_remove_movimento():
    s = _snap().atualiza_movimento("m2", quantidade=10)
    assert s.estoque_de("p1") == 30
    s = s.sem_movimento("m2")
    assert s.estoque_de("p1") == 40


def test_payload_de_backup():
    s = _snap()
    payload = s.to_payload()
    assert payload["version"] == 1
    assert payload["savedAtISO"] == "2024-05-02T12:00:00Z"
    assert payload["products"][0]["id"] == "p1"

    restaurado = Snapshot.from_payload(payload)
    assert restaurado.estoque_de("p1") == 5
    assert restaurado.produto("p2").nome == "Leite"


def test_payload_invalido():
    assert Snapshot.from_payload({"products": "x", "movements": []}) is None
    assert Snapshot.from_payload([]) is None


def test_com_produto_acrescenta_no_fim():
    s = _snap().com_produto(Produto(id="p3", nome="Sal", unidade="kg", minimo=1))
    assert [p.id for p in s.products] == ["p1", "p2", "p3"]
    assert s.estoque_de("p3") == 0
    assert [p.nome for p in s.estoque_baixo()] == ["Arroz", "Sal"]
