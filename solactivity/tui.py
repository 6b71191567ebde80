import argparse
import requests
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

API_BASE = "http://localhost:8000"
console = Console()


def call_activity(address, granularity="hours", range_days=-1, api_base=API_BASE):
    resp = requests.get(
        f"{api_base}/api/{address}/activity/{granularity}/days/{range_days}",
        timeout=60,
    )
    if resp.status_code >= 400:
        try:
            body = resp.json()
        except ValueError:
            body = {"error": "HTTPError", "message": resp.text}
        raise SystemExit(f"{resp.status_code} {body.get('error')}: {body.get('message')}")
    return resp.json()


def main():
    ap = argparse.ArgumentParser(description="Show bucketed activity for a wallet or token")
    ap.add_argument("address")
    ap.add_argument("--granularity", default="hours")
    ap.add_argument("--range", dest="range_days", type=int, default=-1,
                    help="N = first N days since first activity, -N = last N days")
    ap.add_argument("--api", default=API_BASE)
    ap.add_argument("--details", action="store_true", help="List individual trades")
    args = ap.parse_args()

    data = call_activity(args.address, args.granularity, args.range_days, args.api)
    summary = data.get("summary", {})
    timespan = data.get("timespan", {})
    dist = summary.get("activityDistribution", {})

    console.rule(f"[bold cyan]{data.get('type', '?').upper()} {data.get('address')}[/bold cyan]")

    hdr = Table(show_header=False, show_edge=False, pad_edge=False)
    hdr.add_row("Range", str(data.get("rangeDescription")))
    hdr.add_row("Window", f"{timespan.get('start')} -> {timespan.get('end')}")
    hdr.add_row(
        "Granularity",
        f"{timespan.get('granularity')} (effective {timespan.get('effectiveGranularity')})",
    )
    hdr.add_row("Source", str(data.get("source")))
    console.print(hdr)

    console.rule("[bold green]Summary[/bold green]")
    st = Table(show_header=False)
    st.add_row("Periods", str(summary.get("totalPeriods")))
    st.add_row("Transactions", str(summary.get("totalActivity")))
    st.add_row("Average / period", str(summary.get("averageActivity")))
    st.add_row("Peak", str(summary.get("peakActivity")))
    st.add_row("Quiet periods", str(summary.get("quietPeriods")))
    st.add_row(
        "Distribution",
        f"high {dist.get('high')} / medium {dist.get('medium')} / "
        f"low {dist.get('low')} / none {dist.get('none')}",
    )
    console.print(st)

    console.rule("[bold yellow]Active periods[/bold yellow]")
    active = [p for p in data.get("dataPoints", []) if p.get("transactionCount") or p.get("partial")]
    if active:
        bt = Table("Period", "Trades", "Volume USD", "P&L USD", "Partial")
        for point in active:
            bt.add_row(
                point["timestamp"],
                str(point["transactionCount"]),
                f"{point['volume']:,.2f}",
                f"{point['profitLoss']:,.2f}",
                "yes" if point.get("partial") else "",
            )
            if args.details:
                for tx in point.get("transactionDetails", []):
                    who = tx.get("counterpartyAddress") or tx.get("tokenSymbol")
                    bt.add_row(
                        f"  {tx['timestamp']}",
                        tx["action"],
                        f"{tx['volumeUsd']:,.2f}",
                        f"{tx['profitLoss']:,.2f}",
                        str(who),
                    )
        console.print(bt)
    else:
        console.print("No activity in this window.")

    warnings = data.get("warnings") or []
    if warnings:
        console.rule("[bold red]Warnings[/bold red]")
        lines = [f"{w.get('timestamp') or '-'} {w['code']}: {w['message']}" for w in warnings]
        console.print(Panel.fit(Text("\n".join(lines), justify="left")))


if __name__ == "__main__":
    main()
