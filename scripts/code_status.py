#!/usr/bin/env python3
"""
Consultar ou ajustar um codigo de cadastro: mostra o estado real (inclusive
inativo/expirado) e, opcionalmente, altera limite de usos e ativacao.

Uso:
  python scripts/code_status.py --code ABC123 [--max-usages 5] [--activate | --deactivate] [--clear-expiry]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Garante que o pacote signupcodes seja importável quando rodado diretamente
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from signupcodes.core.config import get_settings  # noqa: E402
from signupcodes.core.logging import configure_logging  # noqa: E402
from signupcodes.services.lifecycle_service import CodePatch, LifecycleService  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Consultar/ajustar codigo de cadastro")
    ap.add_argument("--code", required=True, help="Codigo de 6 caracteres")
    ap.add_argument("--max-usages", type=int, help="Novo limite de usos")
    group = ap.add_mutually_exclusive_group()
    group.add_argument("--activate", action="store_true", help="Reativar o codigo")
    group.add_argument("--deactivate", action="store_true", help="Desativar o codigo")
    ap.add_argument("--clear-expiry", action="store_true", help="Remover data de expiracao")
    args = ap.parse_args()

    configure_logging(get_settings().log_level)
    svc = LifecycleService()
    patch = CodePatch()
    if args.max_usages is not None:
        patch.max_usages = args.max_usages
    if args.activate:
        patch.is_active = True
    if args.deactivate:
        patch.is_active = False
    if args.clear_expiry:
        patch.expires_at = None

    record = svc.admin_update(args.code, patch) if patch.values() else svc.get_status(args.code)
    print(f"Codigo: {record.code}")
    print(f"  Ativo: {'sim' if record.is_active else 'nao'}")
    print(f"  Usos: {record.current_usages}/{record.max_usages} (restantes: {record.remaining_usages})")
    print(f"  Criado por: {record.created_by}")
    print(f"  Expira em: {record.expires_at.isoformat() if record.expires_at else 'nunca'}")
    if record.is_expired():
        print("  Situacao: expirado")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
