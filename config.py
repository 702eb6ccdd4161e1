"""
EvoDash Configuration
All tunable parameters for the live topology dashboard and its demo driver.
"""

# ─── Server ───────────────────────────────────────────────────────────────────
SERVER_HOST          = "0.0.0.0"
SERVER_PORT          = 3000    # same port the browser dashboard expects
STREAM_QUEUE_SIZE    = 200     # payloads buffered per stream before dropping
STREAM_PING_SECONDS  = 1.0     # keep-alive interval on an idle SSE stream

# ─── Dashboard layout ─────────────────────────────────────────────────────────
# Widget kinds the browser knows how to draw
GRAPH_KINDS = ("network", "fitness", "species", "approximation", "ctrnn")

# (graph_id, kind, x, y, w, h) on a 8x8 grid
DEFAULT_LAYOUT = [
    ("fitness1",       "fitness",       0, 0, 4, 4),
    ("network1",       "network",       4, 0, 4, 4),
    ("species1",       "species",       0, 4, 4, 4),
    ("approximation1", "approximation", 4, 4, 2, 2),
]

# ─── Demo driver ──────────────────────────────────────────────────────────────
NUM_INPUTS        = 3       # input neurons, ids 0..NUM_INPUTS-1
NUM_OUTPUTS       = 1       # output neurons, ids follow the inputs
INSTANCES         = 1       # independent topologies evolved side by side
MAX_TICKS         = 500     # ticks to run
TICK_DELAY_S      = 0.05    # pause between ticks when streaming live

# Per-tick mutation probabilities
ADD_CONN_PR       = 0.20    # add a connection between two unlinked neurons
ADD_NEURON_PR     = 0.05    # split an enabled connection with a new neuron
WEIGHT_MUTATE_PR  = 0.80    # perturb the weight of every connection
TOGGLE_EXPR_PR    = 0.05    # flip the enabled flag of one connection

WEIGHT_INIT_VAR   = 1.0     # variance of a new connection's weight
WEIGHT_MUTATE_VAR = 0.1     # variance of a weight perturbation

# ─── Output / Logging ─────────────────────────────────────────────────────────
SAVE_DIR          = "output"  # directory for saved diagrams and logs
DIAGRAM_INTERVAL  = 50        # save a topology diagram every N ticks
LOG_CSV           = True      # write per-tick CSV delta log
