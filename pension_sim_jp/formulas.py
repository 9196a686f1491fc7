"""Public pension benefit formulas (annual yen amounts).

Pure functions over scalars. Inputs outside the valid domain (negative months,
unknown disability level, claim age outside 60-75) are clamped rather than
rejected: client profiles are often partially entered. Nothing here rounds;
rounding is a display concern.
"""

# 令和7年度 年金額（年額・円）
KISO_BASE_ANNUAL = 831_700       # 基礎年金満額（遺族基礎・障害基礎2級・老齢基礎）
CHILD_ADDITION_1_2 = 239_300     # 子の加算 第1子・第2子
CHILD_ADDITION_3_PLUS = 79_800   # 子の加算 第3子以降
MIDLIFE_WIDOW_ADDITION = 623_800  # 中高齢寡婦加算
SPOUSAL_ADDITION = 239_300       # 障害厚生 配偶者加給年金
DISABILITY_LEVEL3_MINIMUM = 623_800  # 障害厚生3級 最低保障額
DISABILITY_LEVEL1_MULTIPLIER = 1.25

# 報酬比例部分
PROPORTIONAL_RATE = 5.481 / 1000          # 2003年4月以降の乗率
PROPORTIONAL_RATE_PRE_2003 = 7.125 / 1000  # 2003年3月以前の乗率
DEEMED_MONTHS = 300                       # みなし300月
SURVIVOR_EMPLOYEE_RATIO = 0.75            # 遺族厚生 = 報酬比例の3/4

# 繰上げ・繰下げ（2022年4月以降）
STANDARD_CLAIM_AGE = 65
MIN_CLAIM_AGE = 60
MAX_CLAIM_AGE = 75
EARLY_REDUCTION_PER_MONTH = 0.004
MAX_EARLY_REDUCTION = 0.24
LATE_INCREASE_PER_MONTH = 0.007
MAX_LATE_INCREASE = 0.84

DISABILITY_LEVELS = (1, 2, 3)


def _non_negative(value: float) -> float:
    return value if value > 0 else 0


def clamp_claim_age(claim_age: int) -> int:
    """Clamp an old-age claim age into the 60-75 window."""
    return min(max(int(claim_age), MIN_CLAIM_AGE), MAX_CLAIM_AGE)


def clamp_disability_level(level: int) -> int:
    """Unknown levels fall back to 3 (no basic pension, minimum-guaranteed employee part)."""
    return level if level in DISABILITY_LEVELS else 3


def child_additions(count: int) -> float:
    """Child additions (子の加算) for ``count`` eligible children."""
    count = int(_non_negative(count))
    first_two = min(count, 2) * CHILD_ADDITION_1_2
    rest = max(0, count - 2) * CHILD_ADDITION_3_PLUS
    return first_two + rest


def employee_proportional(
    avg_monthly: float,
    months: int,
    deemed_300: bool = False,
    months_before_2003: int = 0,
    avg_monthly_before_2003: float = 0.0,
) -> float:
    """Earnings-proportional amount (報酬比例部分).

    ``months`` is enrolment from April 2003 onward, valued at 5.481/1000;
    ``months_before_2003`` is valued at 7.125/1000 on its own average.
    With ``deemed_300`` a total below 300 months is topped up to 300 and the
    shortfall is valued at the post-2003 rate.
    """
    avg_monthly = _non_negative(avg_monthly)
    months = _non_negative(months)
    avg_before = _non_negative(avg_monthly_before_2003)
    months_before = _non_negative(months_before_2003)

    amount = avg_before * months_before * PROPORTIONAL_RATE_PRE_2003
    amount += avg_monthly * months * PROPORTIONAL_RATE
    total_months = months + months_before
    if deemed_300 and total_months < DEEMED_MONTHS:
        amount += avg_monthly * (DEEMED_MONTHS - total_months) * PROPORTIONAL_RATE
    return amount


def survivor_basic(eligible_child_count: int) -> float:
    """Survivor basic pension (遺族基礎年金). Zero without an eligible child."""
    if eligible_child_count <= 0:
        return 0.0
    return KISO_BASE_ANNUAL + child_additions(eligible_child_count)


def survivor_employee(
    avg_monthly: float, months: int, deemed_300: bool,
    months_before_2003: int = 0, avg_monthly_before_2003: float = 0.0,
) -> float:
    """Survivor employee pension (遺族厚生年金): 3/4 of the deceased's proportional amount."""
    proportional = employee_proportional(
        avg_monthly, months, deemed_300, months_before_2003, avg_monthly_before_2003,
    )
    return proportional * SURVIVOR_EMPLOYEE_RATIO


def disability_basic_base(level: int) -> float:
    """Disability basic pension without child additions."""
    level = clamp_disability_level(level)
    if level == 3:
        return 0.0
    if level == 1:
        return KISO_BASE_ANNUAL * DISABILITY_LEVEL1_MULTIPLIER
    return float(KISO_BASE_ANNUAL)


def disability_basic(level: int, eligible_child_count: int) -> float:
    """Disability basic pension (障害基礎年金). Level 3 has none."""
    if clamp_disability_level(level) == 3:
        return 0.0
    return disability_basic_base(level) + child_additions(eligible_child_count)


def disability_employee_proportional(
    level: int, avg_monthly: float, months: int, deemed_300: bool,
    months_before_2003: int = 0, avg_monthly_before_2003: float = 0.0,
) -> float:
    """Disability employee pension before the spousal addition."""
    level = clamp_disability_level(level)
    amount = employee_proportional(
        avg_monthly, months, deemed_300, months_before_2003, avg_monthly_before_2003,
    )
    if level == 1:
        amount *= DISABILITY_LEVEL1_MULTIPLIER
    elif level == 3:
        amount = max(amount, DISABILITY_LEVEL3_MINIMUM)
    return amount


def disability_employee(
    level: int, spousal_addition: float,
    avg_monthly: float, months: int, deemed_300: bool,
    months_before_2003: int = 0, avg_monthly_before_2003: float = 0.0,
) -> float:
    """Disability employee pension (障害厚生年金) including the spousal addition for levels 1-2."""
    amount = disability_employee_proportional(
        level, avg_monthly, months, deemed_300, months_before_2003, avg_monthly_before_2003,
    )
    if clamp_disability_level(level) < 3:
        amount += _non_negative(spousal_addition)
    return amount


def old_age_basic() -> float:
    """Old-age basic pension (老齢基礎年金), assuming a full 40-year contribution record."""
    return float(KISO_BASE_ANNUAL)


def old_age_employee(
    avg_monthly: float, months: int,
    months_before_2003: int = 0, avg_monthly_before_2003: float = 0.0,
) -> float:
    """Old-age employee pension (老齢厚生年金). No deemed-300 floor."""
    return employee_proportional(
        avg_monthly, months,
        months_before_2003=months_before_2003,
        avg_monthly_before_2003=avg_monthly_before_2003,
    )


def deferral_factor(claim_age: int) -> float:
    """Multiplier for claiming old-age pension at ``claim_age`` instead of 65.

    繰上げ: -0.4%/month (max -24%), 繰下げ: +0.7%/month (max +84%).
    """
    claim_age = clamp_claim_age(claim_age)
    months = abs(claim_age - STANDARD_CLAIM_AGE) * 12
    if claim_age < STANDARD_CLAIM_AGE:
        return 1 - min(months * EARLY_REDUCTION_PER_MONTH, MAX_EARLY_REDUCTION)
    if claim_age > STANDARD_CLAIM_AGE:
        return 1 + min(months * LATE_INCREASE_PER_MONTH, MAX_LATE_INCREASE)
    return 1.0


def deferral_adjust(base_amount: float, claim_age: int) -> float:
    """Apply the early/late claim adjustment to an amount payable at 65."""
    return _non_negative(base_amount) * deferral_factor(claim_age)


def midlife_widow_addition() -> float:
    """Mid-life widow addition (中高齢寡婦加算). Eligibility is decided by the evaluator."""
    return float(MIDLIFE_WIDOW_ADDITION)
