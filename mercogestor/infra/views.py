# mercogestor/infra/views.py
"""
Criação de views auxiliares e índices sobre a tabela de documentos.

Views criadas:
- vw_categorias: categorias com o nome extraído do JSON.
- vw_produtos:   produtos com colunas planas (útil para depuração).
- vw_movimentos: movimentos com quantidade assinada (+in / -out).
- vw_usuarios:   usuários e papéis.

Obs.:
- As views assumem que as migrações V1→V2 já foram aplicadas.
- Os índices de expressão cobrem os campos usados nas consultas por
  igualdade (categoria, productId, tipo) e por faixa (dataISO).
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        c.executescript(
            """
            DROP VIEW IF EXISTS vw_categorias;
            CREATE VIEW vw_categorias AS
            SELECT id, json_extract(dados, '$.categoria') AS categoria
            FROM documento
            WHERE colecao = 'categorias';

            DROP VIEW IF EXISTS vw_produtos;
            CREATE VIEW vw_produtos AS
            SELECT
                id,
                json_extract(dados, '$.nome')      AS nome,
                json_extract(dados, '$.unidade')   AS unidade,
                json_extract(dados, '$.minimo')    AS minimo,
                json_extract(dados, '$.preco')     AS preco,
                json_extract(dados, '$.categoria') AS categoria
            FROM documento
            WHERE colecao = 'produtos';

            DROP VIEW IF EXISTS vw_movimentos;
            CREATE VIEW vw_movimentos AS
            SELECT
                id,
                json_extract(dados, '$.productId')     AS product_id,
                json_extract(dados, '$.tipo')          AS tipo,
                json_extract(dados, '$.quantidade')    AS quantidade,
                CASE json_extract(dados, '$.tipo')
                    WHEN 'in'  THEN  json_extract(dados, '$.quantidade')
                    WHEN 'out' THEN -json_extract(dados, '$.quantidade')
                    ELSE 0
                END                                    AS delta,
                json_extract(dados, '$.dataISO')       AS data_iso,
                json_extract(dados, '$.validadeLote')  AS validade_lote,
                json_extract(dados, '$.motivo')        AS motivo
            FROM documento
            WHERE colecao = 'movimentos';

            DROP VIEW IF EXISTS vw_usuarios;
            CREATE VIEW vw_usuarios AS
            SELECT id, json_extract(dados, '$.nome') AS nome, json_extract(dados, '$.role') AS role
            FROM documento
            WHERE colecao = 'usuarios';
            """
        )

        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS idx_doc_seq        ON documento(colecao, criado_seq);
            CREATE INDEX IF NOT EXISTS idx_doc_categoria  ON documento(colecao, json_extract(dados, '$.categoria'));
            CREATE INDEX IF NOT EXISTS idx_doc_nome       ON documento(colecao, json_extract(dados, '$.nome'));
            CREATE INDEX IF NOT EXISTS idx_doc_product_id ON documento(colecao, json_extract(dados, '$.productId'));
            CREATE INDEX IF NOT EXISTS idx_doc_data_iso   ON documento(colecao, json_extract(dados, '$.dataISO'));
            """
        )
