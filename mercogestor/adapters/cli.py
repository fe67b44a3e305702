# mercogestor/adapters/cli.py
"""
CLI do gestor de estoque (Typer).

Comandos principais:
- migrate                         -> aplica migrações e cria views
- config                          -> mostra os valores padrão em uso
- verificar                       -> painel: totais, baixo estoque, validade
- categorias add/list/update/rm   -> cadastro de categorias
- produtos add/list/show/update/rm
- mov add/list/update/rm/importar -> movimentos (importar: CSV/XLSX)
- backup exportar/importar        -> backup JSON de produtos e movimentos
- rel baixo/validade/serie/top    -> relatórios (serie/top aceitam --csv)
- serve                           -> sobe a API HTTP (Flask)
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mercogestor.config import DB_PATH, DEFAULTS
from mercogestor.domain.errors import MercogestorError
from mercogestor.infra.migrations import apply_migrations
from mercogestor.infra.repositories import DocumentStore
from mercogestor.infra.views import create_views
from mercogestor.usecases import backup, categorias, movimentos, produtos, relatorios
from mercogestor.usecases.verificar_estoque import run_verificar


app = typer.Typer(help="MercoGestor: CLI de estoque")
console = Console()

DB_OPT = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _fmt(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, bool):
        return str(val)
    if isinstance(val, int):
        return f"{val:,}".replace(",", ".")
    if isinstance(val, float):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if isinstance(val, datetime):
        return val.strftime("%d/%m/%Y")
    return str(val)


def _fmt_status(val: str) -> str:
    if val == "empty":
        return f"[bold red]{val}[/]"
    if val == "low":
        return f"[bold yellow]{val}[/]"
    if val == "ok":
        return f"[bold green]{val}[/]"
    return val


def _display_table(data: Dict[str, Any] | List[Dict[str, Any]], title: str = "Resultado") -> None:
    """Exibe os dados em tabelas formatadas usando Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    # Lista de itens - formato dos cadastros e relatórios
    if isinstance(data, list) and isinstance(data[0], dict):
        table = Table(title=title, box=box.ROUNDED)
        columns = list(data[0].keys())
        for column in columns:
            if column.lower() in ("quantidade", "estoque", "minimo", "falta", "total", "preco",
                                  "entradas", "saidas", "saldo", "dias"):
                table.add_column(column, justify="right")
            elif column.lower() in ("dataiso", "validade", "validadelote", "periodo"):
                table.add_column(column, justify="center")
            else:
                table.add_column(column)
        for row in data:
            values = []
            for col in columns:
                val = row.get(col, "")
                values.append(_fmt_status(val) if col == "status" else _fmt(val))
            table.add_row(*values)
        console.print(table)
        return

    # Painel do verificar
    if isinstance(data, dict) and "totalProdutos" in data:
        tot = data.get("totais", {})
        linhas = [
            f"Produtos cadastrados: {data['totalProdutos']}",
            f"Estoque total: {_fmt(data['totalEstoque'])}",
            f"Baixo estoque: {data['baixoEstoque']}",
            f"Perto do vencimento: {data['pertoVencimento']}",
        ]
        if tot:
            linhas.append(
                f"Entradas: {_fmt(tot['entradas'])} | Saídas: {_fmt(tot['saidas'])} | Saldo: {_fmt(tot['saldo'])}"
            )
        console.print(Panel("\n".join(linhas), title=title))
        if data.get("produtos"):
            _display_table(data["produtos"], title="Produtos")
        return

    # Operações em lote
    if isinstance(data, dict) and "registros" in data and "total" in data:
        titulo = f"{data['tipo']} em Lote" if "tipo" in data else "Registros em Lote"
        panel_content = [
            f"Total de registros: {data['total']}",
            f"Processados com sucesso: {data.get('sucessos', 0)}",
        ]
        if data.get("erros"):
            panel_content.append(f"Erros: {len(data['erros'])}")
        console.print(Panel("\n".join(panel_content), title=titulo))

        if data.get("erros"):
            erro_table = Table(title="Erros Encontrados")
            erro_table.add_column("Linha")
            erro_table.add_column("Erro")
            for erro in data["erros"]:
                erro_table.add_row(str(erro.get("linha", "?")), erro.get("mensagem", "Erro desconhecido"))
            console.print(erro_table)
        return

    # Configuração
    if isinstance(data, dict) and "_db" in data:
        cfg_table = Table(title=title)
        cfg_table.add_column("Parâmetro")
        cfg_table.add_column("Valor")
        for chave, valor in data.items():
            if not chave.startswith("_"):
                cfg_table.add_row(chave, str(valor))
        console.print(cfg_table)
        console.print(f"[dim]Banco de dados: {data['_db']}[/dim]")
        return

    # Registro único (campo/valor)
    if isinstance(data, dict):
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Campo")
        table.add_column("Valor")
        for chave, valor in data.items():
            table.add_row(chave, _fmt_status(valor) if chave == "status" else _fmt(valor))
        console.print(table)
        return

    _print_json(data)


@contextmanager
def _dominio():
    """Converte erros de domínio em mensagem vermelha e exit code 1."""
    try:
        yield
    except MercogestorError as e:
        console.print(f"[bold red]Erro ({e.status}):[/] {e.message}")
        raise typer.Exit(code=1)


def _campos(**kw) -> Dict[str, Any]:
    """Somente as opções informadas entram no corpo da atualização."""
    return {k: v for k, v in kw.items() if v is not None}


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = DB_OPT):
    """Aplica migrações e recria as views auxiliares."""
    apply_migrations(db_path)
    create_views(db_path)
    typer.echo(f">> Migrações aplicadas e views criadas em: {db_path}")


@app.command("config")
def cmd_config(db_path: str = DB_OPT):
    """Exibe os valores padrão efetivos."""
    out = {**asdict(DEFAULTS), "_db": db_path}
    _display_table(out, title="Configuração")


@app.command("verificar")
def cmd_verificar(
    dias: int = typer.Option(DEFAULTS.janela_validade_dias, help="Janela de validade (dias)"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = DB_OPT,
):
    """Painel do estoque: totais, baixo estoque e validade próxima."""
    res = run_verificar(DocumentStore(db_path), dias)
    if as_json:
        _print_json(res)
        return
    _display_table(res, title="Verificação de Estoque")


@app.command("serve")
def cmd_serve(
    host: str = typer.Option(DEFAULTS.host, help="Endereço de escuta"),
    port: int = typer.Option(DEFAULTS.port, help="Porta HTTP"),
    db_path: str = DB_OPT,
):
    """Sobe a API HTTP em /api."""
    from mercogestor.adapters.http_api import create_app

    typer.echo(f">> API em http://{host}:{port}/api (db: {db_path})")
    create_app(db_path=db_path).run(host=host, port=port)


# -----------------------
# categorias
# -----------------------

cat_app = typer.Typer(help="Cadastro de categorias")
app.add_typer(cat_app, name="categorias")


@cat_app.command("add")
def cat_add(nome: str = typer.Argument(..., help="Nome da categoria"), db_path: str = DB_OPT):
    with _dominio():
        category_id = categorias.criar_categoria(DocumentStore(db_path), {"categoria": nome})
    typer.echo(f">> Categoria cadastrada: {category_id}")


@cat_app.command("list")
def cat_list(db_path: str = DB_OPT):
    itens = categorias.listar_categorias(DocumentStore(db_path))
    _display_table([c.to_dict() for c in itens], title="Categorias")


@cat_app.command("update")
def cat_update(
    category_id: str = typer.Argument(...),
    nome: str = typer.Argument(..., help="Novo nome"),
    db_path: str = DB_OPT,
):
    with _dominio():
        cat = categorias.atualizar_categoria(DocumentStore(db_path), category_id, {"categoria": nome})
    _display_table(cat.to_dict(), title="Categoria Atualizada")


@cat_app.command("rm")
def cat_rm(category_id: str = typer.Argument(...), db_path: str = DB_OPT):
    """Remove a categoria e limpa o campo nos produtos que a usavam."""
    with _dominio():
        res = categorias.remover_categoria(DocumentStore(db_path), category_id)
    typer.echo(f">> Categoria removida: {res['categoria'].categoria} ({res['produtosAlterados']} produtos alterados)")


# -----------------------
# produtos
# -----------------------

prod_app = typer.Typer(help="Cadastro de produtos")
app.add_typer(prod_app, name="produtos")


@prod_app.command("add")
def prod_add(
    nome: str = typer.Option(..., help="Nome (único)"),
    unidade: str = typer.Option(..., help="Unidade de medida (kg, un, L...)"),
    minimo: str = typer.Option(..., help="Estoque mínimo"),
    preco: Optional[str] = typer.Option(None, help="Preço unitário"),
    categoria: Optional[str] = typer.Option(None, help="Nome da categoria"),
    db_path: str = DB_OPT,
):
    payload = _campos(nome=nome, unidade=unidade, minimo=minimo, preco=preco, categoria=categoria)
    with _dominio():
        product_id = produtos.criar_produto(DocumentStore(db_path), payload)
    typer.echo(f">> Produto cadastrado: {product_id}")


@prod_app.command("list")
def prod_list(db_path: str = DB_OPT):
    itens = produtos.listar_produtos(DocumentStore(db_path))
    _display_table([p.to_dict() for p in itens], title="Produtos")


@prod_app.command("show")
def prod_show(product_id: str = typer.Argument(...), db_path: str = DB_OPT):
    """Produto com estoque atual e status."""
    with _dominio():
        info = produtos.situacao_produto(DocumentStore(db_path), product_id)
    _display_table(info, title="Produto")


@prod_app.command("update")
def prod_update(
    product_id: str = typer.Argument(...),
    nome: Optional[str] = typer.Option(None),
    unidade: Optional[str] = typer.Option(None),
    minimo: Optional[str] = typer.Option(None),
    preco: Optional[str] = typer.Option(None),
    categoria: Optional[str] = typer.Option(None, help="Vazio limpa a categoria"),
    db_path: str = DB_OPT,
):
    payload = _campos(nome=nome, unidade=unidade, minimo=minimo, preco=preco, categoria=categoria)
    with _dominio():
        prod = produtos.atualizar_produto(DocumentStore(db_path), product_id, payload)
    _display_table(prod.to_dict(), title="Produto Atualizado")


@prod_app.command("rm")
def prod_rm(product_id: str = typer.Argument(...), db_path: str = DB_OPT):
    """Remove o produto e seus movimentos."""
    with _dominio():
        res = produtos.remover_produto(DocumentStore(db_path), product_id)
    typer.echo(f">> Produto removido: {res['produto'].nome} ({res['movimentosRemovidos']} movimentos removidos)")


# -----------------------
# movimentos
# -----------------------

mov_app = typer.Typer(help="Entradas e saídas de estoque")
app.add_typer(mov_app, name="mov")


@mov_app.command("add")
def mov_add(
    produto: str = typer.Option(..., "--produto", help="ID do produto"),
    tipo: str = typer.Option(..., help="in | out"),
    quantidade: str = typer.Option(...),
    data: Optional[str] = typer.Option(None, help="Data ISO (padrão: agora)"),
    preco: Optional[str] = typer.Option(None, help="Preço unitário"),
    validade: Optional[str] = typer.Option(None, help="Validade do lote (entradas)"),
    motivo: Optional[str] = typer.Option(None, help="sale | consumption | waste | adjust (saídas)"),
    db_path: str = DB_OPT,
):
    payload = _campos(
        productId=produto,
        tipo=tipo,
        quantidade=quantidade,
        dataISO=data or datetime.now().isoformat(timespec="seconds"),
        precoUnitario=preco,
        validadeLote=validade,
        motivo=motivo,
    )
    with _dominio():
        movement_id = movimentos.registrar_movimento(DocumentStore(db_path), payload)
    typer.echo(f">> Movimento cadastrado: {movement_id}")


@mov_app.command("list")
def mov_list(
    tipo: Optional[str] = typer.Option(None, help="in | out | all"),
    inicio: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    fim: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    produto: Optional[str] = typer.Option(None, "--produto", help="ID do produto"),
    db_path: str = DB_OPT,
):
    itens = movimentos.listar_movimentos(DocumentStore(db_path), tipo, inicio, fim, produto)
    _display_table([m.to_dict() for m in itens], title="Movimentos")


@mov_app.command("update")
def mov_update(
    movement_id: str = typer.Argument(...),
    produto: Optional[str] = typer.Option(None, "--produto"),
    tipo: Optional[str] = typer.Option(None),
    quantidade: Optional[str] = typer.Option(None),
    data: Optional[str] = typer.Option(None),
    preco: Optional[str] = typer.Option(None),
    validade: Optional[str] = typer.Option(None),
    motivo: Optional[str] = typer.Option(None),
    db_path: str = DB_OPT,
):
    payload = _campos(
        productId=produto,
        tipo=tipo,
        quantidade=quantidade,
        dataISO=data,
        precoUnitario=preco,
        validadeLote=validade,
        motivo=motivo,
    )
    with _dominio():
        mov = movimentos.atualizar_movimento(DocumentStore(db_path), movement_id, payload)
    _display_table(mov.to_dict(), title="Movimento Atualizado")


@mov_app.command("rm")
def mov_rm(movement_id: str = typer.Argument(...), db_path: str = DB_OPT):
    with _dominio():
        mov = movimentos.remover_movimento(DocumentStore(db_path), movement_id)
    typer.echo(f">> Movimento removido: {mov.id}")


@mov_app.command("importar")
def mov_importar(
    path: str = typer.Argument(..., help="Planilha CSV/XLSX de movimentos"),
    db_path: str = DB_OPT,
):
    """Registra movimentos em lote a partir de uma planilha."""
    with _dominio():
        info = movimentos.importar_movimentos(DocumentStore(db_path), path)
    _display_table(info, title="Importação de Movimentos")


# -----------------------
# backup
# -----------------------

backup_app = typer.Typer(help="Backup de produtos e movimentos em JSON")
app.add_typer(backup_app, name="backup")


@backup_app.command("exportar")
def backup_exportar(
    path: Optional[str] = typer.Argument(None, help="Arquivo JSON (padrão: mercadinho-backup-AAAA-MM-DD.json)"),
    db_path: str = DB_OPT,
):
    """Grava produtos e movimentos num arquivo JSON."""
    with _dominio():
        info = backup.exportar_backup(DocumentStore(db_path), path or backup.nome_padrao())
    _display_table(info, title="Backup Exportado")


@backup_app.command("importar")
def backup_importar(
    path: str = typer.Argument(..., help="Arquivo JSON gerado por 'backup exportar'"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Não pede confirmação"),
    db_path: str = DB_OPT,
):
    """Substitui TODOS os produtos e movimentos pelo conteúdo do backup."""
    if not yes:
        typer.confirm("Isso substitui todos os produtos e movimentos. Continuar?", abort=True)
    with _dominio():
        info = backup.importar_backup(DocumentStore(db_path), path)
    _display_table(info, title="Backup Importado")


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios de estoque")
app.add_typer(rel_app, name="rel")


@rel_app.command("baixo")
def rel_baixo(db_path: str = DB_OPT):
    """Produtos esgotados ou abaixo do mínimo."""
    itens = relatorios.relatorio_estoque_baixo(DocumentStore(db_path))
    rows = [
        {"produto": i.produto.nome, "estoque": i.estoque, "minimo": i.minimo, "falta": i.falta, "status": i.status}
        for i in itens
    ]
    _display_table(rows, title="Estoque Baixo")


@rel_app.command("validade")
def rel_validade(
    dias: int = typer.Option(DEFAULTS.janela_validade_dias, help="Janela em dias"),
    db_path: str = DB_OPT,
):
    """Produtos cujo lote mais próximo vence dentro da janela."""
    itens = relatorios.relatorio_validade(DocumentStore(db_path), dias)
    rows = [{"produto": i.produto.nome, **{k: v for k, v in i.to_dict().items() if k != "produto"}} for i in itens]
    _display_table(rows, title=f"Validade Próxima ({dias} dias)")


@rel_app.command("serie")
def rel_serie(
    agrupar: str = typer.Option("day", help="day | month"),
    inicio: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    fim: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    tipo: Optional[str] = typer.Option(None, help="in | out | all"),
    produto: Optional[str] = typer.Option(None, "--produto"),
    csv: Optional[str] = typer.Option(None, "--csv", help="Exporta as linhas para CSV"),
    db_path: str = DB_OPT,
):
    """Entradas, saídas e saldo por dia ou mês."""
    with _dominio():
        serie = relatorios.relatorio_serie(DocumentStore(db_path), agrupar, inicio, fim, tipo, produto)
    linhas = serie.linhas()
    if csv:
        from mercogestor.adapters.planilhas import export_csv

        n = export_csv(linhas, csv, columns=["periodo", "entradas", "saidas", "saldo"])
        typer.echo(f">> {n} linhas exportadas para {csv}")
        return
    _display_table(linhas, title="Série de Movimentos")


@rel_app.command("top")
def rel_top(
    inicio: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    fim: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    limite: int = typer.Option(DEFAULTS.top_consumo, help="Top N produtos"),
    csv: Optional[str] = typer.Option(None, "--csv", help="Exporta o ranking para CSV"),
    db_path: str = DB_OPT,
):
    """Produtos com maior saída no período."""
    ranking = relatorios.relatorio_mais_consumidos(DocumentStore(db_path), inicio, fim, limite)
    if csv:
        from mercogestor.adapters.planilhas import export_csv

        n = export_csv(ranking, csv, columns=["productId", "nome", "total"])
        typer.echo(f">> {n} linhas exportadas para {csv}")
        return
    _display_table(ranking, title=f"Top {limite} Mais Consumidos")


def main():
    app()


if __name__ == "__main__":
    main()
