"""
Calculs purs sur les résultats d'examens : total, classement, classement global,
badges, niveau et statistiques d'une session.

Aucune requête BDD ici : les fonctions travaillent sur des lignes déjà chargées
(instances TestScore ou dictionnaires avec les mêmes clés).
"""

import math
import statistics
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from app.schemas.ranking import (
    Badge,
    LevelResult,
    OverallRanking,
    OverallRankingResult,
    RankedRecord,
    RecordAnalysis,
    SittingSummary,
    SittingSummaryResult,
    StudentLevel,
)

# Matières comptées dans total_score.
# clinical_medicine_detail_total est un sous-total et n'en fait pas partie.
SCORED_SUBJECTS = (
    "medical_overview",
    "public_health",
    "related_laws",
    "anatomy",
    "physiology",
    "pathology",
    "clinical_medicine_overview",
    "clinical_medicine_detail",
    "rehabilitation",
    "oriental_medicine_overview",
    "meridian_points",
    "oriental_medicine_clinical",
    "oriental_medicine_clinical_general",
    "acupuncture_theory",
    "moxibustion_theory",
)

# Toutes les colonnes matières de test_scores / question_counts
SUBJECT_FIELDS = SCORED_SUBJECTS[:8] + ("clinical_medicine_detail_total",) + SCORED_SUBJECTS[8:]

SUBJECT_GROUPS = {
    "basic": ("medical_overview", "public_health", "related_laws", "anatomy", "physiology", "pathology"),
    "clinical": ("clinical_medicine_overview", "clinical_medicine_detail", "rehabilitation"),
    "oriental": (
        "oriental_medicine_overview",
        "meridian_points",
        "oriental_medicine_clinical",
        "oriental_medicine_clinical_general",
    ),
    "specialized": ("acupuncture_theory", "moxibustion_theory"),
}
COMMON_SUBJECTS = SUBJECT_GROUPS["basic"] + SUBJECT_GROUPS["clinical"] + SUBJECT_GROUPS["oriental"]

# Matières pour lesquelles subject_criteria définit des seuils
CRITERIA_SUBJECTS = (
    "anatomy",
    "physiology",
    "clinical_medicine_overview",
    "clinical_medicine_detail",
    "oriental_medicine_overview",
    "meridian_points",
    "oriental_medicine_clinical",
)

PASSING_SCORE = 114      # Ligne de réussite
HIGH_SCORE = 152         # 80 % de 190 points
ANATOMY_BADGE_SCORE = 12
ORIENTAL_BADGE_SCORE = 50
CLINICAL_BADGE_SCORE = 40
TOP_RANK_LIMIT = 3

EXP_PER_TEST = 10
EXP_PER_PASS = 20
EXP_PER_HIGH_SCORE = 30
EXP_PER_LEVEL = 100

TIE_POLICIES = ("ordinal", "dense")


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _as_number(value: Any) -> Optional[float]:
    """Convertit une valeur de score en nombre, None si elle n'est pas numérique."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    try:
        return float(value)  # Decimal
    except (TypeError, ValueError):
        return None


def _sum_subjects(record: Any, subjects: Iterable[str]) -> float:
    return sum(_as_number(_field(record, s)) or 0.0 for s in subjects)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_total_score(record: Any) -> float:
    """Somme des 15 matières notées ; valeurs absentes ou non numériques comptent pour 0."""
    return _sum_subjects(record, SCORED_SUBJECTS)


def effective_total(record: Any) -> float:
    """total_score enregistré s'il est numérique, sinon recalculé."""
    stored = _as_number(_field(record, "total_score"))
    return stored if stored is not None else compute_total_score(record)


def rank_within_test(records: Iterable[Any], tie_policy: str = "ordinal") -> list[RankedRecord]:
    """
    Classe les lignes d'une session par total décroissant.

    - ordinal : rang = position + 1, les égalités ne sont pas regroupées
      (l'ordre d'entrée départage, le tri étant stable)
    - dense   : même total → même rang, le total suivant prend le rang suivant
    """
    if tie_policy not in TIE_POLICIES:
        raise ValueError(f"Politique d'égalité inconnue : {tie_policy}")

    scored = [(record, effective_total(record)) for record in records]
    scored.sort(key=lambda item: item[1], reverse=True)

    ranked = []
    previous_total = None
    dense_rank = 0
    for position, (record, total) in enumerate(scored):
        if total != previous_total:
            dense_rank += 1
            previous_total = total
        ranked.append(RankedRecord(
            id=_field(record, "id"),
            student_id=str(_field(record, "student_id")),
            test_name=_field(record, "test_name") or "",
            test_date=_field(record, "test_date"),
            total_score=total,
            rank=position + 1 if tie_policy == "ordinal" else dense_rank,
        ))
    return ranked


def compute_overall_ranking(
    student_id: str,
    sittings: Iterable[Iterable[Any]],
    tie_policy: str = "ordinal",
) -> OverallRankingResult:
    """
    Classement global d'un élève sur toutes les sessions auxquelles il a participé.

    Chaque session est l'ensemble des lignes d'un même (test_name, test_date).
    Les sessions où l'élève n'apparaît pas sont ignorées.
    """
    student_id = str(student_id)
    placements = []  # (test_name, rang, nb participants)

    for sitting in sittings:
        ranked = rank_within_test(sitting, tie_policy)
        entry = next((r for r in ranked if r.student_id == student_id), None)
        if entry is None:
            continue
        placements.append((entry.test_name, entry.rank, len(ranked)))

    if not placements:
        return OverallRankingResult(success=False, error="Aucune donnée de classement valide trouvée.")

    ranks = [rank for _, rank, _ in placements]
    average_rank = _round_half_up(sum(ranks) / len(ranks))
    best_rank = min(ranks)
    best_test = next(name for name, rank, _ in placements if rank == best_rank)

    average_participants = sum(count for _, _, count in placements) / len(placements)
    percentile = _round_half_up((average_participants - average_rank) / average_participants * 100)

    return OverallRankingResult(
        success=True,
        data=OverallRanking(
            average_rank=average_rank,
            best_rank=best_rank,
            best_test=best_test,
            percentile=percentile,
            total_tests=len(placements),
        ),
    )


def is_passing(record: Any) -> bool:
    return effective_total(record) >= PASSING_SCORE


def _badge_catalog() -> list[Badge]:
    return [
        Badge(id="first_test", name="Premier défi", description="Premier examen passé",
              icon="star", color="blue"),
        Badge(id="passing_score", name="Réussite", description="Note de réussite obtenue",
              icon="trophy", color="green"),
        Badge(id="top_rank", name="Tête de classement", description="Dans le top 3 du dernier examen",
              icon="medal", color="yellow"),
        Badge(id="perfect_anatomy", name="Maître en anatomie", description="Note élevée en anatomie",
              icon="brain", color="purple"),
        Badge(id="oriental_expert", name="Expert en médecine orientale",
              description="Note élevée en médecine orientale", icon="heart", color="red"),
        Badge(id="clinical_expert", name="Expert en médecine clinique",
              description="Note élevée en médecine clinique", icon="zap", color="orange"),
    ]


def compute_badges(
    student_id: str,
    records: list[Any],
    latest_sitting: Optional[Iterable[Any]] = None,
    tie_policy: str = "ordinal",
) -> list[Badge]:
    """
    Badges d'un élève à partir de son historique.
    latest_sitting : toutes les lignes de sa dernière session (pour le badge top_rank).
    """
    badges = {badge.id: badge for badge in _badge_catalog()}
    if not records:
        return list(badges.values())

    badges["first_test"].earned = True
    badges["passing_score"].earned = any(is_passing(r) for r in records)
    badges["perfect_anatomy"].earned = any(
        (_as_number(_field(r, "anatomy")) or 0) >= ANATOMY_BADGE_SCORE for r in records
    )
    badges["oriental_expert"].earned = any(
        _sum_subjects(r, SUBJECT_GROUPS["oriental"]) >= ORIENTAL_BADGE_SCORE for r in records
    )
    badges["clinical_expert"].earned = any(
        _sum_subjects(r, SUBJECT_GROUPS["clinical"]) >= CLINICAL_BADGE_SCORE for r in records
    )

    if latest_sitting is not None:
        ranked = rank_within_test(latest_sitting, tie_policy)
        entry = next((r for r in ranked if r.student_id == str(student_id)), None)
        badges["top_rank"].earned = entry is not None and entry.rank <= TOP_RANK_LIMIT

    return list(badges.values())


def compute_level(records: list[Any]) -> LevelResult:
    """Niveau = expérience // 100 + 1 ; +10 par examen, +20 par réussite, +30 par note élevée."""
    if not records:
        return LevelResult(success=False, error="Aucun résultat d'examen trouvé.")

    totals = [effective_total(r) for r in records]
    experience = (
        len(totals) * EXP_PER_TEST
        + sum(1 for t in totals if t >= PASSING_SCORE) * EXP_PER_PASS
        + sum(1 for t in totals if t >= HIGH_SCORE) * EXP_PER_HIGH_SCORE
    )
    level = experience // EXP_PER_LEVEL + 1
    next_level = level * EXP_PER_LEVEL

    return LevelResult(
        success=True,
        data=StudentLevel(
            level=level,
            experience=experience,
            next_level=next_level,
            progress=(experience % EXP_PER_LEVEL) / EXP_PER_LEVEL * 100,
            remaining_exp=next_level - experience,
        ),
    )


def analyze_record(record: Any) -> RecordAnalysis:
    common = _sum_subjects(record, COMMON_SUBJECTS)
    acupuncturist = common + (_as_number(_field(record, "acupuncture_theory")) or 0)
    moxibustionist = common + (_as_number(_field(record, "moxibustion_theory")) or 0)
    return RecordAnalysis(
        student_id=str(_field(record, "student_id")),
        total_score=effective_total(record),
        basic_medicine_score=_sum_subjects(record, SUBJECT_GROUPS["basic"]),
        clinical_medicine_score=_sum_subjects(record, SUBJECT_GROUPS["clinical"]),
        oriental_medicine_score=_sum_subjects(record, SUBJECT_GROUPS["oriental"]),
        specialized_score=_sum_subjects(record, SUBJECT_GROUPS["specialized"]),
        common_score=common,
        acupuncturist_score=acupuncturist,
        moxibustionist_score=moxibustionist,
        acupuncturist_passing=acupuncturist >= PASSING_SCORE,
        moxibustionist_passing=moxibustionist >= PASSING_SCORE,
        passing=acupuncturist >= PASSING_SCORE and moxibustionist >= PASSING_SCORE,
    )


def summarize_sitting(records: list[Any]) -> SittingSummaryResult:
    """Moyenne, écart-type, extrêmes, médiane et taux de réussite d'une session."""
    if not records:
        return SittingSummaryResult(success=False, error="Aucun résultat pour cette session.")

    totals = [effective_total(r) for r in records]
    analyses = [analyze_record(r) for r in records]
    count = len(records)
    acupuncturist_count = sum(1 for a in analyses if a.acupuncturist_passing)
    moxibustionist_count = sum(1 for a in analyses if a.moxibustionist_passing)

    subject_averages = {}
    for subject in SCORED_SUBJECTS:
        values = [v for v in (_as_number(_field(r, subject)) for r in records) if v is not None]
        subject_averages[subject] = statistics.fmean(values) if values else 0.0

    return SittingSummaryResult(
        success=True,
        data=SittingSummary(
            participant_count=count,
            average_score=statistics.fmean(totals),
            std_deviation=statistics.pstdev(totals),
            max_score=max(totals),
            min_score=min(totals),
            median_score=sorted(totals)[count // 2],
            acupuncturist_passing_count=acupuncturist_count,
            acupuncturist_passing_rate=acupuncturist_count / count * 100,
            moxibustionist_passing_count=moxibustionist_count,
            moxibustionist_passing_rate=moxibustionist_count / count * 100,
            subject_averages=subject_averages,
        ),
    )


def evaluate_criteria(record: Any, passing: Any = None, failing: Any = None) -> dict[str, str]:
    """
    Compare chaque matière aux seuils de subject_criteria.
    Retourne {matière: "passing" | "failing" | "borderline"} pour les matières notées et seuillées.
    """
    evaluation = {}
    for subject in CRITERIA_SUBJECTS:
        value = _as_number(_field(record, subject))
        pass_threshold = _as_number(_field(passing, subject)) if passing is not None else None
        fail_threshold = _as_number(_field(failing, subject)) if failing is not None else None
        if value is None or (pass_threshold is None and fail_threshold is None):
            continue
        if pass_threshold is not None and value >= pass_threshold:
            evaluation[subject] = "passing"
        elif fail_threshold is not None and value <= fail_threshold:
            evaluation[subject] = "failing"
        else:
            evaluation[subject] = "borderline"
    return evaluation
