import json
from datetime import date
from pathlib import Path

import pytest

from mercogestor.domain.errors import InvalidInput
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases import backup
from mercogestor.usecases.movimentos import listar_movimentos, registrar_movimento
from mercogestor.usecases.produtos import criar_produto, listar_produtos
from mercogestor.usecases.relatorios import carregar_snapshot


def _store(tmp_path: Path, nome: str = "backup.sqlite") -> DocumentStore:
    return DocumentStore(str(tmp_path / nome))


def _popular(store: DocumentStore) -> str:
    pid = criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 10, "preco": "5,50"})
    registrar_movimento(store, {"productId": pid, "tipo": "in", "quantidade": 40, "dataISO": "2024-05-01",
                                "validadeLote": "2024-12-31"})
    registrar_movimento(store, {"productId": pid, "tipo": "out", "quantidade": 15, "dataISO": "2024-05-02",
                                "motivo": "sale"})
    return pid


def test_nome_padrao():
    assert backup.nome_padrao(date(2024, 5, 3)) == "mercadinho-backup-2024-05-03.json"


def test_exportar_grava_payload(tmp_path: Path):
    store = _store(tmp_path)
    pid = _popular(store)
    arquivo = tmp_path / "bkp.json"

    info = backup.exportar_backup(store, str(arquivo))

    assert (info["produtos"], info["movimentos"]) == (1, 2)
    payload = json.loads(arquivo.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert payload["savedAtISO"] == info["savedAtISO"]
    assert payload["products"][0]["id"] == pid
    assert payload["products"][0]["preco"] == 5.5
    assert [m["tipo"] for m in payload["movements"]] == ["in", "out"]


def test_exportar_em_diretorio_inexistente(tmp_path: Path):
    with pytest.raises(InvalidInput):
        backup.exportar_backup(_store(tmp_path), str(tmp_path / "nao" / "existe.json"))


def test_importar_substitui_colecoes(tmp_path: Path):
    origem = _store(tmp_path, "origem.sqlite")
    pid = _popular(origem)
    arquivo = tmp_path / "bkp.json"
    backup.exportar_backup(origem, str(arquivo))

    destino = _store(tmp_path, "destino.sqlite")
    criar_produto(destino, {"nome": "Feijão", "unidade": "kg", "minimo": 1})

    info = backup.importar_backup(destino, str(arquivo))

    assert (info["produtos"], info["movimentos"], info["descartados"]) == (1, 2, 0)
    assert [p.id for p in listar_produtos(destino)] == [pid]
    assert carregar_snapshot(destino).estoque_de(pid) == 25
    movs = listar_movimentos(destino)
    assert [(m.tipo, m.validade_lote, m.motivo) for m in movs] == [
        ("in", "2024-12-31", None),
        ("out", None, "sale"),
    ]


def test_importar_descarta_movimentos_orfaos(tmp_path: Path):
    arquivo = tmp_path / "bkp.json"
    arquivo.write_text(json.dumps({
        "version": 1,
        "savedAtISO": "2024-05-02T12:00:00Z",
        "products": [{"id": "p1", "nome": "Arroz", "unidade": "kg", "minimo": 10}],
        "movements": [
            {"id": "m1", "productId": "p1", "tipo": "in", "quantidade": 8, "dataISO": "2024-05-01"},
            {"id": "m2", "productId": "sumiu", "tipo": "in", "quantidade": 3, "dataISO": "2024-05-01"},
            {"id": "m3", "productId": "p1", "tipo": "transfer", "quantidade": 1, "dataISO": "2024-05-01"},
        ],
    }), encoding="utf-8")
    store = _store(tmp_path)

    info = backup.importar_backup(store, str(arquivo))

    assert info == {"produtos": 1, "movimentos": 1, "descartados": 2, "savedAtISO": "2024-05-02T12:00:00Z"}
    assert [m.id for m in listar_movimentos(store)] == ["m1"]


@pytest.mark.parametrize(
    "conteudo",
    [
        "não é json",
        json.dumps({"products": "x", "movements": []}),
        json.dumps([1, 2, 3]),
    ],
)
def test_importar_arquivo_invalido_nao_altera_o_store(tmp_path: Path, conteudo):
    store = _store(tmp_path)
    pid = _popular(store)
    arquivo = tmp_path / "bkp.json"
    arquivo.write_text(conteudo, encoding="utf-8")

    with pytest.raises(InvalidInput, match="Arquivo de backup inválido."):
        backup.importar_backup(store, str(arquivo))
    assert [p.id for p in listar_produtos(store)] == [pid]
    assert len(listar_movimentos(store)) == 2


def test_importar_arquivo_inexistente(tmp_path: Path):
    with pytest.raises(InvalidInput, match="não encontrado"):
        backup.importar_backup(_store(tmp_path), str(tmp_path / "sumiu.json"))
