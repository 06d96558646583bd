"""Command line entry point for SwiftKopa.

    swiftkopa quote 10000 6
    swiftkopa limit land 333333
"""
import argparse
import logging
import sys

from swiftkopa.config import LOG_LEVEL, LOG_FORMAT
from swiftkopa.exceptions import ValidationError
from swiftkopa.formatting import format_currency, format_rate
from swiftkopa.services import price, max_loan


def configure_logging(level=LOG_LEVEL):
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)


def _amount(text):
    try:
        return float(text.replace(",", ""))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")


def print_quote(terms, out=None):
    out = out or sys.stdout
    lines = [
        f"Principal:           {format_currency(terms.principal)}",
        f"Interest rate:       {format_rate(terms.monthly_rate)} per month",
        f"Term:                {terms.term_months} months",
        f"Interest (uncapped): {format_currency(terms.raw_interest)}",
        f"Interest charged:    {format_currency(terms.capped_interest)}",
        f"Total repayment:     {format_currency(terms.total_repayment)}",
        f"Monthly payment:     {format_currency(terms.monthly_installment)}",
    ]
    if terms.interest_cap_applied:
        lines.append("Interest capped at the principal (duplum rule).")
    out.write("\n".join(lines) + "\n")


def print_limit(limit, out=None):
    out = out or sys.stdout
    out.write(
        f"{limit.collateral_category.value.title()} worth {format_currency(limit.asset_value)} "
        f"at {format_rate(limit.loan_to_value_ratio)} LTV secures up to "
        f"{format_currency(limit.max_principal)}\n"
    )


def build_parser():
    parser = argparse.ArgumentParser(prog="swiftkopa", description="SwiftKopa loan calculator")
    parser.add_argument("--log-level", default=LOG_LEVEL)
    commands = parser.add_subparsers(dest="command", required=True)

    quote = commands.add_parser("quote", help="price a loan")
    quote.add_argument("amount", type=_amount)
    quote.add_argument("term", type=int, help="repayment term in months")

    limit = commands.add_parser("limit", help="maximum loan against collateral")
    limit.add_argument("category", help="vehicle, equipment or land")
    limit.add_argument("asset_value", type=_amount)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "quote":
            print_quote(price(args.amount, args.term))
        else:
            print_limit(max_loan(args.category, args.asset_value))
    except ValidationError as e:
        sys.stderr.write(f"error: {e.message}\n")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
