import json, argparse, sys, numpy as np
from pathlib import Path
from pydantic import ValidationError
from .configuration import ProximalConfig, load_config, make_metadata
from .core.errors import ProximalError
from .dispatch import RegularizerType, REGULARIZER_NAMES, compute_proximal, resolve_regularizer
from .experimental_logging import log

def _load_vector(path):
    p = Path(path)
    if p.suffix == ".npy":
        return np.load(p).astype(float).ravel()
    return np.loadtxt(p, dtype=float, ndmin=1)

def _save_vector(path, x):
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.suffix == ".npy":
        np.save(p, x)
    else:
        np.savetxt(p, x)

def cmd_prox(args):
    cfg = load_config(args.config)
    overrides = {}
    if args.step is not None: overrides["step"] = args.step
    if args.n_jobs is not None: overrides["n_jobs"] = args.n_jobs
    if overrides:
        cfg = ProximalConfig(**{**cfg.model_dump(), **overrides})
    d = _load_vector(args.input)
    seed = _load_vector(args.seed) if args.seed else None
    selector = int(args.type) if args.type.isdigit() else args.type
    reg = resolve_regularizer(selector, cfg)
    log("prox_start", input=args.input, regularizer=reg.name.lower(), n=int(d.shape[0]),
        lam=args.lam, theta=args.theta)
    x = compute_proximal(d, d.shape[0], args.lam, args.theta, selector, seed=seed, config=cfg)
    _save_vector(args.out, x)
    if args.meta:
        meta = make_metadata(cfg, reg.name.lower(), args.lam, args.theta, int(d.shape[0]),
                             {"nonzeros": int(np.count_nonzero(x))})
        with open(args.meta, "w", encoding="utf-8") as fh:
            json.dump(meta, fh, indent=2)
    log("prox_done", out=args.out, nonzeros=int(np.count_nonzero(x)))

def cmd_list(args):
    for reg in RegularizerType:
        names = sorted(k for k, v in REGULARIZER_NAMES.items() if v is reg)
        print(f"{int(reg)}  {reg.name:<10} {', '.join(names)}")

def main(argv=None):
    ap = argparse.ArgumentParser(prog="gist-prox")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("prox", help="Evaluate a proximal operator on a vector")
    p.add_argument("--input", required=True, help=".npy or whitespace separated text file")
    p.add_argument("--type", default="1", help="type code 1-5 or regularizer name")
    p.add_argument("--lam", type=float, required=True)
    p.add_argument("--theta", type=float, required=True)
    p.add_argument("--out", required=True)
    p.add_argument("--config", default=None, help="YAML file with ProximalConfig fields")
    p.add_argument("--step", type=float, default=None)
    p.add_argument("--n-jobs", type=int, default=None)
    p.add_argument("--seed", default=None, help="output seed for the indexed soft-threshold")
    p.add_argument("--meta", default=None, help="write run metadata JSON here")
    p.set_defaults(func=cmd_prox)

    l = sub.add_parser("list", help="List available regularizers")
    l.set_defaults(func=cmd_list)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (ProximalError, ValidationError) as e:
        log("error", kind=type(e).__name__, message=str(e))
        return 2
    return 0

if __name__ == "__main__":
    sys.exit(main())
