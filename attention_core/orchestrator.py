# Repository layout
#
#   attention_core/
#     orchestrator.py               # runs demos/tests/visualizations
#     errors.py                     # configuration error kinds
#     config.py                     # AttentionConfig, Mode, DropoutStage, input checks
#     attn_mask.py                  # causal mask helper
#     dropout_hook.py               # identity / seeded stochastic-zero dropout strategies
#     functional.py                 # the causal attention core, one function per step
#     simplified.py                 # non-trainable self-attention (x @ x^T)
#     single_head.py                # 1.3 single attention head (nn.Module over the core)
#     multi_head.py                 # 1.4 multi-head attention (weight split + stacked heads)
#     attn_numpy_reference.py       # 1.2 loop-based NumPy reference, tiny traced example
#     vis_utils.py                  # plotting helpers (matrices & attention maps)
#     logger.py                     # TensorBoard / no-op loggers for attention weights
#     demo_mha_shapes.py            # prints explicit matrix multiplications & shapes step-by-step
#     demo_visualize_multi_head.py  # saves attention heatmaps per head (grid)
#     out/                          # (created at runtime) images & logs live here
#     tests/
#
# Run from the repository root after `pip install -e .`:
#   python -m attention_core.orchestrator --visualize


import subprocess, sys, pathlib, argparse, shlex

PKG = pathlib.Path(__file__).resolve().parent
ROOT = PKG.parent
OUT = PKG / "out"


def run(cmd: str):
    print(f"\n>>> {cmd}")
    res = subprocess.run(shlex.split(cmd), cwd=ROOT)
    if res.returncode != 0:
        sys.exit(res.returncode)


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--visualize", action="store_true", help="run visualization scripts and save PNGs to ./out")
    p.add_argument("--tensorboard", action="store_true", help="with --visualize, also log weights to TensorBoard")
    args = p.parse_args()

    OUT.mkdir(exist_ok=True)
    py = shlex.quote(sys.executable)

    # 1.2 sanity check: NumPy tiny example
    run(f"{py} -m attention_core.attn_numpy_reference")

    # unit tests
    run(f"{py} -m pytest -q attention_core/tests")

    # Matrix math walkthrough for MHA
    run(f"{py} -m attention_core.demo_mha_shapes")

    if args.visualize:
        extra = " --tensorboard" if args.tensorboard else ""
        run(f"{py} -m attention_core.demo_visualize_multi_head{extra}")
        print(f"\nVisualization images saved to: {OUT}")

    print("\nAll attention demos/tests completed.")


if __name__ == "__main__":
    main()
