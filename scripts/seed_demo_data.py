#!/usr/bin/env python3
"""Populate the database with the demo workspace used by the login flow.

The identifiers match the static RBAC assignments (``tenant-1``, ``admin-1``,
``user-1``) so the demo accounts resolve to their intended roles.
"""
from __future__ import annotations

import argparse
import random
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.backend import BackendClient  # noqa: E402  (import after sys.path manipulation)
from app.core.logger import get_logger, init_logging, log_context, timeit  # noqa: E402
from app.db import create_sync_engine, get_sessionmaker, init_schema  # noqa: E402

logger = get_logger(__name__)

DEMO_TENANT_ID = "tenant-1"

PLANS = [
    {"name": "Básico", "description": "Para pequenos escritórios", "price": Decimal("49.90"), "user_limit": 3, "storage_limit": 1024},
    {"name": "Profissional", "description": "Para empresas em crescimento", "price": Decimal("149.90"), "user_limit": 15, "storage_limit": 10240, "is_recommended": True},
    {"name": "Enterprise", "description": "Grupos com várias filiais", "price": Decimal("499.00"), "user_limit": 100, "storage_limit": 102400},
]

CREDENTIAL_PROVIDERS = [
    {"code": "openai", "name": "OpenAI", "auth_types": ["api_key"], "fields": {"api_key": "Chave de API"}},
    {"code": "anthropic", "name": "Anthropic", "auth_types": ["api_key"], "fields": {"api_key": "Chave de API"}},
    {
        "code": "aws_s3",
        "name": "Amazon S3",
        "auth_types": ["access_key"],
        "fields": {"access_key_id": "Access key ID", "secret_access_key": "Secret access key", "bucket": "Bucket"},
    },
]

TENANTS = [
    {"id": DEMO_TENANT_ID, "nome": "Acme Tecnologia", "plano": "pro", "slug": "acme", "limiteusuarios": 15},
    {"nome": "Padaria Pão Quente", "plano": "basic", "slug": "pao-quente", "limiteusuarios": 3},
]

USERS = [
    {"id": "admin-1", "email": "admin@acme.com.br", "name": "Administrador Acme", "role": "admin"},
    {"id": "user-1", "email": "usuario@acme.com.br", "name": "Usuária Acme", "role": "user"},
]

CATEGORIES = {
    "income": ["vendas", "serviços", "juros"],
    "expense": ["folha", "aluguel", "fornecedores", "impostos", "marketing"],
}
TASK_TITLES = [
    "Conciliar extrato bancário",
    "Emitir notas fiscais do mês",
    "Revisar contrato de aluguel",
    "Enviar DRE para a diretoria",
    "Renegociar prazo com fornecedor",
]


def _insert(client: BackendClient, table: str, rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    rows = list(rows)
    if not rows:
        return []
    result = client.table(table).insert(rows).execute()
    if not result.ok:
        raise RuntimeError(f"Failed to seed {table}: {result.error}")
    return result.data


def _transactions(company_id: str, count: int, rng: random.Random) -> list[dict[str, Any]]:
    today = date.today()
    rows = []
    for _ in range(count):
        kind = "income" if rng.random() < 0.45 else "expense"
        rows.append(
            {
                "tenant_id": DEMO_TENANT_ID,
                "company_id": company_id,
                "type": kind,
                "category": rng.choice(CATEGORIES[kind]),
                "amount": Decimal(rng.randint(5_000, 1_500_000)) / 100,
                "date": today - timedelta(days=rng.randint(0, 180)),
                "status": rng.choices(["completed", "pending", "cancelled"], weights=[7, 2, 1])[0],
                "payment_method": rng.choice(["pix", "boleto", "cartão", "transferência"]),
            }
        )
    return rows


def seed(client: BackendClient, *, transactions: int = 60, seed_value: int = 42) -> dict[str, int]:
    """Insert the demo workspace and return the number of rows per table."""

    rng = random.Random(seed_value)
    counts: dict[str, int] = {}
    with timeit("Seed demo workspace", logger=logger) as timer:
        with client.transaction() as tx:
            counts["saas_plans"] = len(_insert(tx, "saas_plans", PLANS))
            counts["credential_providers"] = len(_insert(tx, "credential_providers", CREDENTIAL_PROVIDERS))
            counts["tenants"] = len(_insert(tx, "tenants", TENANTS))
            companies = _insert(
                tx,
                "companies",
                [
                    {
                        "tenant_id": DEMO_TENANT_ID,
                        "cnpj": "12.345.678/0001-90",
                        "razao_social": "Acme Tecnologia LTDA",
                        "nome_fantasia": "Acme",
                        "is_headquarters": True,
                    },
                    {
                        "tenant_id": DEMO_TENANT_ID,
                        "cnpj": "12.345.678/0002-71",
                        "razao_social": "Acme Tecnologia LTDA - Filial Campinas",
                        "nome_fantasia": "Acme Campinas",
                    },
                ],
            )
            counts["companies"] = len(companies)
            headquarters = next(company for company in companies if company["is_headquarters"])
            counts["users"] = len(_insert(tx, "users", USERS))
            counts["tenant_users"] = len(
                _insert(
                    tx,
                    "tenant_users",
                    [{"tenant_id": DEMO_TENANT_ID, "user_id": user["id"], "role": user["role"]} for user in USERS],
                )
            )
            organization = _insert(
                tx, "organizations", [{"tenant_id": DEMO_TENANT_ID, "name": "Financeiro", "contact_email": "financeiro@acme.com.br"}]
            )[0]
            counts["organizations"] = 1
            counts["organization_users"] = len(
                _insert(tx, "organization_users", [{"organization_id": organization["id"], "user_id": "user-1"}])
            )
            counts["transactions"] = len(_insert(tx, "transactions", _transactions(headquarters["id"], transactions, rng)))
            counts["tasks"] = len(
                _insert(
                    tx,
                    "tasks",
                    [
                        {
                            "tenant_id": DEMO_TENANT_ID,
                            "title": title,
                            "due_date": date.today() + timedelta(days=7 * index),
                            "priority": rng.choice(["low", "medium", "high"]),
                            "assigned_to": "user-1",
                            "created_by": "admin-1",
                        }
                        for index, title in enumerate(TASK_TITLES)
                    ],
                )
            )
        timer.add(sum(counts.values()))
    return counts


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--database-url", help="SQLAlchemy URL (defaults to the configured database)")
    parser.add_argument("--transactions", type=int, default=60, help="Number of demo transactions")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducible data")
    parser.add_argument("--create-schema", action="store_true", help="Create missing tables first")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    init_logging(level=args.log_level)
    engine = create_sync_engine(args.database_url)
    if args.create_schema:
        init_schema(engine)
    client = BackendClient(get_sessionmaker(engine=engine))
    with log_context.bound(script="seed_demo_data"):
        counts = seed(client, transactions=args.transactions, seed_value=args.seed)
    for table, count in counts.items():
        logger.info("%-20s %5d rows", table, count)


if __name__ == "__main__":
    main()
