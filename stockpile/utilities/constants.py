from typing import Final

DATE_FORMAT: Final[str] = "%Y-%m-%d"

CATEGORIES: Final[tuple] = ("water", "staple", "main", "side", "hygiene", "other")
LOCATIONS: Final[tuple] = ("pantry", "fridge", "emergency_bag")
DEFAULT_UNIT: Final[str] = "個"
DEFAULT_CATEGORY: Final[str] = "other"
DEFAULT_LOCATION: Final[str] = "pantry"

# Defaults applied to a scanned item before it is added (manual-add form values)
SCAN_DEFAULT_QUANTITY: Final[int] = 1
SCAN_DEFAULT_CATEGORY: Final[str] = "staple"
SCAN_DEFAULT_MAX_QUANTITY: Final[int] = 5
SCAN_DEFAULT_SHELF_LIFE_DAYS: Final[int] = 365

# Dashboard stock-health uses this target when a rolling-stock item has none
STOCK_HEALTH_DEFAULT_TARGET: Final[int] = 3

ENRICHMENT_PENDING: Final[str] = "pending"
ENRICHMENT_READY: Final[str] = "ready"

REASON_BELOW_TARGET: Final[str] = "目標数を下回っています"
REASON_ENRICHMENT_FAILED: Final[str] = "自動追加"

AMAZON_SEARCH_URL: Final[str] = "https://www.amazon.co.jp/s?k={query}"

ADVISOR_ERROR_SUGGESTION: Final[dict] = {
    "title": "エラー",
    "description": "現在提案を生成できません。",
    "items_used": [],
}
EMERGENCY_ACTIONS_EMPTY_FALLBACK: Final[tuple] = (
    "水の確保を最優先してください",
    "冷蔵庫の中身を確認してください",
    "体温維持に努めてください",
)
EMERGENCY_ACTIONS_ERROR_FALLBACK: Final[tuple] = (
    "身の安全を確保してください",
    "ラジオ等で情報を収集してください",
)

IDENTIFY_PROMPT: Final[str] = (
    """
    Analyze this product image for a pantry inventory app.
    Extract the following details in JSON format.
    Output 'name' and 'unit' in Japanese.

    - name: The product name (concise, e.g., "トマトスープ").
    - quantity: Estimated quantity based on package size (number). Default to 1 if unsure.
    - unit: The unit (e.g., "缶", "袋", "箱", "本").
    - expiry_date: The expiry date if clearly visible (YYYY-MM-DD). If not visible, estimate a safe duration from today based on product type (e.g., canned goods +2 years).
    - category: One of ['water', 'staple', 'main', 'side', 'hygiene', 'other'].
    - calories: Estimated calories per unit (number).
    - requires_fire: boolean (true if it needs cooking/heating).
    - requires_water: boolean (true if it needs water to prepare, e.g., dry pasta).

    Return ONLY the JSON object.
    """
)

RESTOCK_PROMPT_TEMPLATE: Final[str] = (
    """
    The user is running low on "{name}" in their rolling stock inventory.
    1. Suggest a good search query for Amazon Japan (Amazon.co.jp) to buy this. Prefer bulk or multi-pack if typical for pantry.
    2. Provide a very short reason in Japanese (under 30 chars) why this is added (e.g., "Stock is low").

    Output JSON with keys: search_query, reason.
    """
)

ADVISOR_SYSTEM_EMERGENCY: Final[str] = (
    "あなたは災害サバイバルの専門家です。提供された在庫のみを使用して、3つの食事または解決策を提案してください。"
    "インフラが停止している前提で、在庫に明記されていない限り火や水の使用は避けてください。"
    "カロリー摂取と精神的な安定（モラル）に焦点を当ててください。日本語で出力してください。"
)
ADVISOR_SYSTEM_NORMAL: Final[str] = (
    "あなたは親切な家庭料理のシェフ兼栄養士です。在庫のアイテムを使用し、賞味期限が近いものを優先して、"
    "3つの健康的なレシピを提案してください。バランスの取れた食事に焦点を当ててください。日本語で出力してください。"
)
ADVISOR_PROMPT_TEMPLATE: Final[str] = (
    """
    現在の在庫: {inventory}

    タスク: 3つの提案を作成してください。
    以下のキーを持つJSON配列を返してください: title (料理名/提案名), description (説明), items_used (使用したアイテム名の配列)。
    """
)

EMERGENCY_PROMPT_TEMPLATE: Final[str] = (
    """
    Inventory: {inventory}

    Situation: Emergency disaster mode.
    Task: Provide 3 short, imperative actionable tips for survival based on this specific inventory in Japanese.
    Examples: "Consume perishable items first", "Ration water to 1L per day", "Use canned tuna for protein".

    Output JSON string array.
    """
)
