from __future__ import annotations
from pydantic import BaseModel, Field, PositiveInt
from typing import Optional
import yaml


class ProximalConfig(BaseModel):
    # Unknown type codes fall back to Capped L1 instead of raising
    fallback_to_capped_l1: bool = False
    # Type code 3 selects the indexed soft-threshold instead of SCAD
    legacy_type3: bool = False
    step: float = Field(1.0, gt=0.0)
    n_jobs: PositiveInt = 1
    chunk_size: PositiveInt = 65536
    degeneracy_rtol: float = Field(8.0, ge=0.0)


SCHEMA_VERSION = 1


def load_config(path: Optional[str]) -> ProximalConfig:
    if not path:
        return ProximalConfig()
    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    return ProximalConfig(**raw)


def make_metadata(cfg: ProximalConfig, regularizer: str, lam: float, theta: float, n: int, extra=None):
    meta = {
        "schema_version": SCHEMA_VERSION,
        "regularizer": regularizer,
        "lambda": lam,
        "theta": theta,
        "n": n,
        "step": cfg.step,
        "n_jobs": cfg.n_jobs,
        "chunk_size": cfg.chunk_size,
        "legacy_type3": cfg.legacy_type3,
        "fallback_to_capped_l1": cfg.fallback_to_capped_l1,
    }
    if extra: meta.update(extra)
    return meta
