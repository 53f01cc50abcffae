"""
Prompt templates for spend extraction.

Templates are keyed by prompt id (see bindings.py). `{fields}` is replaced
with the JSON keys the call must return, described by FIELD_SCHEMAS.
"""

from typing import Iterable


FIELD_SCHEMAS: dict[str, str] = {
    "currency": '"currency": ISO 4217 code as a string (e.g. "THB", "USD"), "" if unknown',
    "spend": '"spend": the total amount paid as a number, 0 if no total is stated',
    "positions": '"positions": array of {"name": string, "price": number}, one per purchased item, in order',
    "cashier_name": '"cashier_name": cashier name printed on the receipt as a string, "" if absent',
}


PROMPT_TEMPLATES: dict[str, str] = {
    "receipt": """You are reading a purchase for a personal expense ledger.

The input is a receipt photo, a voice note or a short text such as
"Bought milk for 100 THB".

Rules:
- List every purchased item with its final price (after item discounts).
- Do NOT invent items or prices that are not present in the input.
- If only a total is given, return an empty positions array.
- Prices and totals are plain numbers without currency symbols.

Respond with ONLY a JSON object with exactly these keys:
{fields}""",

    "currency": """Identify the currency of the purchase described in the input.

Use symbols, currency words and the country of the shop as hints.
If the input does not allow a confident answer, return an empty string.

Respond with ONLY a JSON object with exactly these keys:
{fields}""",

    "cashier": """Find the name of the cashier on the receipt in the input.

Only return a name that is explicitly printed or said.
Return an empty string for anything else.

Respond with ONLY a JSON object with exactly these keys:
{fields}""",
}


def render_prompt(prompt_id: str, fields: Iterable[str]) -> str:
    """
    Render a prompt template for the given output fields.

    Raises:
        KeyError: If the prompt id or a field is unknown
    """
    template = PROMPT_TEMPLATES[prompt_id]
    lines = "\n".join(f"- {FIELD_SCHEMAS[name]}" for name in fields)
    return template.format(fields=lines)
