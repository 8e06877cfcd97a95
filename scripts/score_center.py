import sys

from app.core.errors import ReferenceDataError
from app.core.formatting import format_currency, format_percent
from app.data.reference_store import ReferenceStore
from app.data.tables import read_table
from app.schemas.score import ScoreRequest
from app.services.scoring import score_center

"""
CLI usage (optional):
python -m scripts.score_center <summary_csv> <center_code> <num_transplants> <offer_accept_rate> <graft_survival> [--graft-csv PATH]
Prints the score breakdown and per-transplant payments for one proposal.
"""

USAGE = (
    "Usage: python -m scripts.score_center <summary_csv> <center_code> <num_transplants> "
    "<offer_accept_rate> <graft_survival> [--graft-csv PATH]"
)


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    graft_path = None
    if "--graft-csv" in args:
        idx = args.index("--graft-csv")
        if idx + 1 >= len(args):
            print(USAGE)
            sys.exit(1)
        graft_path = args[idx + 1]
        del args[idx:idx + 2]
    if len(args) != 5:
        print(USAGE)
        sys.exit(1)
    summary_path, code, n, accept, graft = args
    try:
        summary_rows = read_table(summary_path)
        graft_rows = read_table(graft_path) if graft_path else []
    except ReferenceDataError as exc:
        print(exc.message)
        sys.exit(2)
    store = ReferenceStore()
    store.load(summary_rows, graft_rows)
    request = ScoreRequest(
        center_code=code,
        num_transplants=n,
        offer_accept_rate=accept,
        graft_survival=graft,
        include_payments=False,
    )
    result = score_center(request, store)
    scores = result.scores
    print(f"Center {code.strip().upper()}: status={result.status}")
    print(f"  Achievement  {scores.achievement_score:>3} / 60  (target {scores.transplant_target:.1f})")
    print(
        f"  Efficiency   {scores.efficiency_score:>3} / 20  "
        f"(acceptance percentile {format_percent(scores.acceptance_percentile, decimals=0)})"
    )
    print(
        f"  Quality      {scores.quality_score:>3} / 20  "
        f"(graft survival percentile {format_percent(scores.graft_survival_percentile, decimals=0)})"
    )
    print(f"  Total        {scores.total_score:>3} / 100")
    print(
        f"Per transplant: upside {format_currency(result.per_transplant.upside)}, "
        f"downside {format_currency(result.per_transplant.downside)}"
    )
    print(
        f"Totals: upside {format_currency(result.totals.upside_total)}, "
        f"downside {format_currency(result.totals.downside_total)}"
    )
    return result


if __name__ == '__main__':
    main()
