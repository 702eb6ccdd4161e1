"""
Quick demo – 200 ticks of one evolving network, fixed seed,
saves diagrams + CSV log without needing a display.
"""
from main import main

main(["--ticks", "200", "--seed", "42", "--diagram_interval", "25",
      "--outdir", "output/demo"])
