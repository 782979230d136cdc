#!/usr/bin/env python3
"""
Criar um novo codigo de cadastro diretamente no banco.

Uso:
  python scripts/generate_code.py --max-usages 10 --created-by admin@example.com [--expires-in-days 7]
"""
from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Garante que o pacote signupcodes seja importável quando rodado diretamente
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from signupcodes.core.config import get_settings  # noqa: E402
from signupcodes.core.logging import configure_logging  # noqa: E402
from signupcodes.domain.codes import utcnow  # noqa: E402
from signupcodes.services.lifecycle_service import LifecycleService  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Criar codigo de cadastro")
    ap.add_argument("--max-usages", type=int, required=True, help="Numero maximo de usos (>= 1)")
    ap.add_argument("--created-by", required=True, help="Identificador de quem emitiu o codigo")
    ap.add_argument("--expires-in-days", type=float, help="Validade em dias (default: nao expira)")
    args = ap.parse_args()

    configure_logging(get_settings().log_level)
    expires_at = None
    if args.expires_in_days is not None:
        if args.expires_in_days <= 0:
            raise SystemExit("--expires-in-days deve ser positivo")
        expires_at = utcnow() + timedelta(days=args.expires_in_days)

    record = LifecycleService().generate(args.max_usages, args.created_by, expires_at)
    print("OK: codigo criado")
    print(f"  Codigo: {record.code}")
    print(f"  Usos: {record.current_usages}/{record.max_usages}")
    print(f"  Criado por: {record.created_by}")
    if record.expires_at:
        print(f"  Expira em: {record.expires_at.isoformat()}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
