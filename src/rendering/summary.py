"""
Summary Renderer

Formats an extraction result as a Telegram HTML message:

    <b>TOTAL</b> 50.00 THB | Cashier <code>Anna</code>
    <b>milk</b> (<i>30.00</i> THB)
    <b>bread</b> (<i>20.00</i> THB)

All extracted text is HTML-escaped before it is placed in the markup.
"""

from html import escape

from src.models.spend import UNKNOWN_ITEM_NAME, ExtractionResult


def _money(value: float) -> str:
    return f"{value:.2f}"


def render_summary(result: ExtractionResult, total: float) -> str:
    """
    Render the reply for one saved extraction event.

    Without positions the item list is omitted and a note names the
    single fallback item that was recorded instead.
    """
    unit = f" {escape(result.currency)}" if result.currency else ""

    header = f"<b>TOTAL</b> {_money(total)}{unit}"
    if result.cashier_name:
        header += f" | Cashier <code>{escape(result.cashier_name)}</code>"

    if not result.positions:
        return f"{header}\nSaved as <i>{escape(UNKNOWN_ITEM_NAME)}</i>"

    lines = [header]
    for position in result.positions:
        lines.append(
            f"<b>{escape(position.name)}</b> "
            f"(<i>{_money(position.price)}</i>{unit})"
        )
    return "\n".join(lines)


def render_failure(message: str) -> str:
    """Plain-text reply for a failed pipeline run."""
    return message.strip() or "Something went wrong. Please try again."
