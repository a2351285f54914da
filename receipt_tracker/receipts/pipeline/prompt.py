"""
LLM prompt for receipt extraction.

The prompt restates in prose the rules that the validator and the date
normalizer enforce mechanically afterwards.
"""
from __future__ import annotations

SYSTEM_PROMPT = (
    "You are an expert at parsing receipt text and extracting structured data. "
    "Extract the ACTUAL business/store name (not slogans or taglines). "
    "Analyze ALL items on the receipt, categorize each one and group them by "
    "category. Always return valid JSON."
)

CATEGORIES = [
    "GROCERY",
    "HEALTH",
    "EDUCATION",
    "ENTERTAINMENT",
    "TRANSPORTATION",
    "UTILITIES",
    "RESTAURANT",
    "SHOPPING",
    "OTHER",
]

WORKED_EXAMPLES = """\
IMPORTANT EXAMPLES:

Example 1 - Store name vs. slogan:
Receipt text: "How doers get more\\n235 Rd Moncton\\n..."
Correct store name: "THE HOME DEPOT" or "HOME DEPOT" ("How doers get more" is Home Depot's slogan)
Wrong: "How doers get more" (a slogan, not the store name)
Other slogans: "Save money. Live better." is WALMART, "Expect more. Pay less." is TARGET.
"SELF-CHECKOUT", "CUSTOMER COPY" and "TRANSACTION" are never store names.
"COSTCO WHOLESALE" may be returned as "COSTCO" or "COSTCO WHOLESALE".

Example 2 - Product codes:
Receipt text: "067001000904 TEFI-OW4PE\\n820909131021 Adj wrench\\n..."
Strip numeric product codes and keep only the description ("Adj wrench").
Match every item with its own price; prices may sit on the same line,
on the next line, or in a separate column.

Example 3 - Insurance vs. patient-paid totals:
Receipt text: "Total: 19.23\\nInsurance Paid: $9.23\\nPatient Pays: $10.00"
Correct total: 10.00 (what the customer actually paid)
Wrong: 19.23 (includes the insurer's share)
Use "Patient Pays", "Amount Paid", "You Paid", "Customer Pays" or
"Out of Pocket" as the total whenever one is present.

Example 4 - Dates:
- "2025/11/21 12:52:58" → "2025-11-21" (ignore the time)
- "2025-11-21" → "2025-11-21"
- "Jun 10, 2025" or "June 10, 2025" → "2025-06-10"
- "11/21/2025" (first number 12 or less is the month) → "2025-11-21"
- "21/11/2025" (first number above 12 is the day) → "2025-11-21"
Two-digit years, format XX/XX/XX:
- If the FIRST number is above 12 it is the YEAR: "26/01/08" → "2026-01-08" (YY/MM/DD)
- If the SECOND number is above 12 it is the DAY: "01/26/08" → "2008-01-26" (MM/DD/YY)
- Otherwise read it as DD/MM/YY: "08/01/26" → "2026-01-08"
- Two-digit years 00-40 are 2000-2040, 41-99 are 1941-1999.
Incomplete dates such as "6/11/2" must NOT be completed by guessing. Search
the whole receipt for a complete date; if none exists, use today's date and
set needsReview to true.
"""

RESPONSE_SHAPE = """\
{
  "store": {
    "name": "Store name (REQUIRED)",
    "phone": "Store phone if available"
  },
  "receiptDate": "Receipt date as YYYY-MM-DD",
  "paymentMethod": "CARD, CASH or OTHER (method only, never card details)",
  "totals": {
    "subtotal": number,
    "tax": number,
    "total": number (REQUIRED)
  },
  "categoryReceipts": [
    {
      "category": "%(categories)s",
      "total": number (REQUIRED, includes this category's tax),
      "subtotal": number,
      "tax": number
    }
  ],
  "needsReview": true or false
}"""

RULES = """\
RULES:
- Do NOT return individual items. Use them only to decide categories.
- Return one categoryReceipts entry per category present on the receipt.
- If tax cannot be attributed to categories, add ALL of it to the category
  with the largest subtotal.
- The sum of categoryReceipts[*].total MUST equal totals.total.
- Numbers carry no currency symbols. Omit subtotal or tax when not shown.
- Payment: "CASH" → CASH; "CARD", "Credit", "Debit", "Visa", "Mastercard",
  "AMEX" or the last four digits of a card → CARD; anything else → OTHER.
- Set needsReview to true whenever the store name, date, category or
  totals are uncertain.
- Return ONLY the JSON object, no extra text.
"""


def build_prompt(raw_text: str) -> str:
    """Build the extraction prompt for *raw_text* (embedded verbatim)."""
    shape = RESPONSE_SHAPE % {"categories": ", ".join(CATEGORIES)}
    return (
        "You are an expert at parsing receipt text. Extract structured data accurately.\n\n"
        f"{WORKED_EXAMPLES}\n"
        "---\n\n"
        "Now parse the following receipt text:\n\n"
        'Receipt Text:\n"""\n'
        f"{raw_text}\n"
        '"""\n\n'
        "Return the following JSON structure:\n\n"
        f"{shape}\n\n"
        f"{RULES}\n"
        "Return the JSON object:"
    )
