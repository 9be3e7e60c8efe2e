"""
Heuristic spam scoring for review submissions.

Scores run from 0 to 100:
- 0-29: likely legitimate, approve
- 30-59: suspicious, surfaced for review
- 60-100: likely spam, auto-flagged and hidden until an admin unflags it

The score is an additive fold over an ordered list of independent rules.
Each rule returns (points, reasons) and never depends on another rule.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

AUTO_FLAG_THRESHOLD = 60
REVIEW_THRESHOLD = 30
MAX_SCORE = 100

SPAM_PATTERNS = [
    re.compile(r'\b(buy|sell|discount|offer|deal|free|click here|act now)\b', re.IGNORECASE),
    re.compile(r'\b(viagra|cialis|casino|lottery|winner|congratulations)\b', re.IGNORECASE),
    re.compile(r'\b(earn money|make money|work from home|mlm|cryptocurrency)\b', re.IGNORECASE),
    re.compile(r'\$\d+[,\d]*\s*(per|a)\s*(day|week|month|hour)', re.IGNORECASE),
    re.compile(r'(http|https|www\.)[^\s]+', re.IGNORECASE),
    re.compile(r'(.)\1{4,}'),
]

URL_PATTERN = re.compile(r'(http|https|www\.)[^\s]+', re.IGNORECASE)
PUNCTUATION_PATTERN = re.compile(r'[!?]{2,}')
UPPERCASE_PATTERN = re.compile(r'[A-Z]')

SUSPICIOUS_EMAIL_PATTERNS = [
    re.compile(r'@(temp|fake|spam|trash|guerrilla)', re.IGNORECASE),
    re.compile(r'\d{5,}@', re.IGNORECASE),
]

GENERIC_PHRASES = [
    'great place',
    'highly recommend',
    'best ever',
    'worst ever',
    'terrible',
    'amazing',
]

KEYBOARD_SPAM_PATTERN = re.compile(r'asdf|qwer|zxcv|1234|aaaa|test', re.IGNORECASE)


@dataclass
class SpamCheckResult:
    """Advisory moderation metadata attached to a submission"""
    score: int
    reasons: List[str] = field(default_factory=list)
    auto_flag: bool = False

    def to_dict(self) -> dict:
        return {
            'score': self.score,
            'reasons': list(self.reasons),
            'auto_flag': self.auto_flag,
        }


@dataclass
class Submission:
    """Inputs seen by every rule"""
    text: str
    email: Optional[str]
    location_name: str
    overall_rating: object


RuleResult = Tuple[int, List[str]]


def _as_text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    try:
        return str(value)
    except (TypeError, ValueError):
        return ''


def check_length(sub: Submission) -> RuleResult:
    if len(sub.text) < 60:
        return 15, ['Very short review']
    return 0, []


def check_caps(sub: Submission) -> RuleResult:
    text = sub.text
    if len(text) > 20:
        caps_ratio = len(UPPERCASE_PATTERN.findall(text)) / len(text)
        if caps_ratio > 0.5:
            return 25, ['Excessive caps']
    return 0, []


def check_spam_patterns(sub: Submission) -> RuleResult:
    points = 0
    reasons = []
    for pattern in SPAM_PATTERNS:
        matches = [m.group(0) for m in pattern.finditer(sub.text)]
        if matches:
            points += 15 * len(matches)
            reasons.append(f'Spam pattern: "{matches[0]}"')
    return points, reasons


def check_urls(sub: Submission) -> RuleResult:
    # Scored in addition to the URL family in SPAM_PATTERNS
    if URL_PATTERN.search(sub.text):
        return 30, ['Contains URLs']
    return 0, []


def check_punctuation(sub: Submission) -> RuleResult:
    if len(PUNCTUATION_PATTERN.findall(sub.text)) > 2:
        return 10, ['Excessive punctuation']
    return 0, []


def check_email(sub: Submission) -> RuleResult:
    if not sub.email:
        return 0, []
    for pattern in SUSPICIOUS_EMAIL_PATTERNS:
        if pattern.search(sub.email):
            return 20, ['Suspicious email address']
    return 0, []


def check_generic_content(sub: Submission) -> RuleResult:
    lower_text = sub.text.lower()
    generic_count = sum(1 for phrase in GENERIC_PHRASES if phrase in lower_text)
    if generic_count >= 3 and len(sub.text) < 100:
        return 15, ['Generic template-like content']
    return 0, []


def check_keyboard_spam(sub: Submission) -> RuleResult:
    if KEYBOARD_SPAM_PATTERN.search(sub.text):
        return 40, ['Keyboard spam pattern']
    return 0, []


def check_extreme_rating(sub: Submission) -> RuleResult:
    rating = sub.overall_rating
    if isinstance(rating, bool):
        return 0, []
    if rating in (1, 5) and len(sub.text) < 80:
        return 10, ['Extreme rating with minimal detail']
    return 0, []


def check_location_echo(sub: Submission) -> RuleResult:
    # Short text repeating the business name is usually low effort
    if sub.location_name.lower() in sub.text.lower() and len(sub.text) < 100:
        return 5, []
    return 0, []


RULES: List[Callable[[Submission], RuleResult]] = [
    check_length,
    check_caps,
    check_spam_patterns,
    check_urls,
    check_punctuation,
    check_email,
    check_generic_content,
    check_keyboard_spam,
    check_extreme_rating,
    check_location_echo,
]


def score_submission(
    text: str,
    submitter_email: Optional[str],
    location_name: str,
    overall_rating: int,
) -> SpamCheckResult:
    """
    Scores a review submission for spam likelihood.

    Args:
        text: Free-text review body
        submitter_email: Reviewer email, if known
        location_name: Name of the reviewed business
        overall_rating: User-supplied 1-5 star rating

    Returns:
        SpamCheckResult with the capped score, ordered reasons and auto-flag decision
    """
    email = submitter_email if isinstance(submitter_email, str) else None
    submission = Submission(
        text=_as_text(text),
        email=email,
        location_name=_as_text(location_name),
        overall_rating=overall_rating,
    )

    score = 0
    reasons: List[str] = []
    for rule in RULES:
        points, rule_reasons = rule(submission)
        score += points
        reasons.extend(rule_reasons)

    score = min(score, MAX_SCORE)
    return SpamCheckResult(score=score, reasons=reasons, auto_flag=score >= AUTO_FLAG_THRESHOLD)


def verdict(result: SpamCheckResult) -> str:
    """
    Moderation recommendation for a scored submission.

    Returns:
        'flag' (hidden until unflagged), 'review' (shown, highlighted) or 'approve'
    """
    if result.score >= AUTO_FLAG_THRESHOLD:
        return 'flag'
    if result.score >= REVIEW_THRESHOLD:
        return 'review'
    return 'approve'
