"""LinkedIn DOM selector constants with fallbacks.

Ordered by stability: data-* > aria-* > class names.
Each constant is a tuple so callers iterate until a match is found.
"""

# --- Login form ---
USERNAME_SELECTORS: tuple[str, ...] = (
    "#username",
    'input[name="session_key"]',
)
PASSWORD_SELECTORS: tuple[str, ...] = (
    "#password",
    'input[name="session_password"]',
)
LOGIN_SUBMIT_SELECTORS: tuple[str, ...] = (
    'button[type="submit"]',
    'button[data-litms-control-urn="login-submit"]',
)

# --- Security challenge ---
CODE_INPUT_SELECTORS: tuple[str, ...] = (
    'input[name="pin"]',
    'input[id*="verification"]',
    'input[id*="pin"]',
    'input[aria-label*="code"]',
    'input[placeholder*="code"]',
    'input[placeholder*="Enter code"]',
)
CODE_SUBMIT_SELECTORS: tuple[str, ...] = (
    'button[type="submit"]',
    'button[id*="submit"]',
    'button:has-text("Submit")',
)

# --- Job card container (one strategy per page, never mixed) ---
CARD_SELECTORS: tuple[str, ...] = (
    "li[data-occludable-job-id]",
    "ul.scaffold-layout__list-container > li",
    ".jobs-search-results__list-item",
    "li.jobs-search-results__list-item",
    "ul.jobs-search__results-list > li",
    ".scaffold-layout__list li",
)

# --- Job ID attributes on the card element ---
JOB_ID_ATTRS: tuple[str, ...] = (
    "data-occludable-job-id",
    "data-job-id",
)

# --- Title inside a card ---
TITLE_SELECTORS: tuple[str, ...] = (
    "a span strong",
    ".job-card-list__title",
    ".artdeco-entity-lockup__title",
    "a.job-card-container__link",
)

# --- Title link inside a card ---
TITLE_LINK_SELECTORS: tuple[str, ...] = (
    'a[href*="/jobs/view/"]',
    "a.job-card-list__title",
    "a.job-card-container__link",
)

# --- Company name ---
COMPANY_SELECTORS: tuple[str, ...] = (
    ".job-card-container__primary-description",
    ".artdeco-entity-lockup__subtitle",
    "span.job-card-container__company-name",
)

# --- Location ---
LOCATION_SELECTORS: tuple[str, ...] = (
    ".job-card-container__metadata-item",
    ".artdeco-entity-lockup__caption",
    "span.job-card-container__metadata-wrapper",
)

# --- Detail panel (right-hand side after clicking a card) ---
DETAIL_CONTAINER_SELECTORS: tuple[str, ...] = (
    ".jobs-search__job-details--container",
    ".job-details-jobs-unified-top-card",
    ".jobs-details",
)

DESCRIPTION_SELECTORS: tuple[str, ...] = (
    ".jobs-description__content",
    ".jobs-description-content__text",
    ".jobs-box__html-content",
    "#job-details",
)

POSTED_TIME_SELECTORS: tuple[str, ...] = (
    "span.tvm__text.tvm__text--low-emphasis",
    ".job-details-jobs-unified-top-card__primary-description-container span",
    "time",
)

COMPANY_LINK_SELECTORS: tuple[str, ...] = (
    '.job-details-jobs-unified-top-card__company-name a[href*="/company/"]',
    'a[href*="/company/"]',
)

APPLY_BUTTON_SELECTORS: tuple[str, ...] = (
    ".jobs-apply-button",
    "button.jobs-apply-button",
    "a.jobs-apply-button",
    '[data-control-name="jobdetails_topcard_inapply"]',
    ".jobs-s-apply button",
    ".jobs-apply-button--top-card",
)

# --- Pagination ---
NEXT_PAGE_SELECTORS: tuple[str, ...] = (
    'button[aria-label="View next page"]',
    'button[aria-label="Next"]',
    ".artdeco-pagination__button--next",
    "button.artdeco-pagination__button--next",
)

# --- Company page ---
COMPANY_WEBSITE_SELECTORS: tuple[str, ...] = (
    'a[data-test-id="about-us__website"]',
    'a[href^="http"]:not([href*="linkedin.com"])',
)

COMPANY_DESCRIPTION_SELECTORS: tuple[str, ...] = (
    ".org-top-card-summary__tagline",
    ".break-words.white-space-pre-wrap",
    "p.break-words",
)

COMPANY_INFO_ITEM_SELECTOR: str = ".org-top-card-summary-info-list__info-item"

COMPANY_ADDRESS_SELECTORS: tuple[str, ...] = (
    '.org-top-card-summary-info-list__info-item:has-text("·")',
    ".org-page-details__definition-text",
    ".org-location-card p",
)
