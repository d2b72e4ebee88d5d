"""
Tests unitaires pour les calculs purs : total, classement, classement global, badges, niveau, statistiques.
"""

from datetime import date

import pytest

from app.services.scoring import (
    SCORED_SUBJECTS,
    analyze_record,
    compute_badges,
    compute_level,
    compute_overall_ranking,
    compute_total_score,
    effective_total,
    evaluate_criteria,
    is_passing,
    rank_within_test,
    summarize_sitting,
)


def make_record(student_id="1", total=None, test_name="AMT模擬試験", test_date=date(2025, 1, 10), **subjects):
    record = {
        "id": None,
        "student_id": student_id,
        "test_name": test_name,
        "test_date": test_date,
        "total_score": total,
    }
    record.update(subjects)
    return record


# --- Total ---

def test_total_deux_matieres():
    assert compute_total_score({"anatomy": 12, "physiology": 13}) == 25


def test_total_valeurs_absentes_ou_non_numeriques():
    record = {"anatomy": 10, "physiology": None, "pathology": "abc", "public_health": "5"}
    assert compute_total_score(record) == 15


def test_total_ignore_sous_total_clinique():
    record = {"clinical_medicine_detail": 8, "clinical_medicine_detail_total": 30}
    assert compute_total_score(record) == 8


def test_total_toutes_matieres():
    record = {subject: 1 for subject in SCORED_SUBJECTS}
    assert compute_total_score(record) == 15


def test_total_effectif_prefere_valeur_enregistree():
    assert effective_total(make_record(total=100, anatomy=5)) == 100
    assert effective_total(make_record(total=None, anatomy=5)) == 5


# --- Classement d'une session ---

def test_classement_ordinal():
    records = [make_record("A", 90), make_record("B", 120), make_record("C", 110)]

    ranked = rank_within_test(records)

    assert [(r.student_id, r.rank) for r in ranked] == [("B", 1), ("C", 2), ("A", 3)]


def test_classement_egalite_ordinal_non_regroupee():
    records = [make_record("A", 120), make_record("B", 120), make_record("C", 90)]

    ranked = rank_within_test(records, "ordinal")

    assert [r.rank for r in ranked] == [1, 2, 3]
    assert [r.student_id for r in ranked] == ["A", "B", "C"]


def test_classement_egalite_dense():
    records = [make_record("A", 120), make_record("B", 120), make_record("C", 90)]

    ranked = rank_within_test(records, "dense")

    assert [r.rank for r in ranked] == [1, 1, 2]


def test_classement_idempotent():
    records = [make_record("A", 120), make_record("B", 120), make_record("C", 90)]

    assert rank_within_test(records) == rank_within_test(records)


def test_classement_recalcule_total_manquant():
    records = [make_record("A", None, anatomy=50), make_record("B", 40)]

    ranked = rank_within_test(records)

    assert ranked[0].student_id == "A"
    assert ranked[0].total_score == 50


def test_classement_politique_inconnue():
    with pytest.raises(ValueError):
        rank_within_test([make_record("A", 10)], "competition")


# --- Classement global ---

def test_classement_global_deux_sessions():
    session_1 = [make_record("A", 120, "T1"), make_record("B", 100, "T1"), make_record("C", 80, "T1")]
    session_2 = [make_record("B", 130, "T2"), make_record("A", 90, "T2")]

    result = compute_overall_ranking("A", [session_1, session_2])

    assert result.success is True
    # rangs 1 et 2 → moyenne 1.5 arrondie à 2 ; participants moyens 2.5
    assert result.data.average_rank == 2
    assert result.data.best_rank == 1
    assert result.data.best_test == "T1"
    assert result.data.percentile == 20
    assert result.data.total_tests == 2


def test_classement_global_ignore_sessions_sans_eleve():
    session_1 = [make_record("A", 120, "T1"), make_record("B", 100, "T1")]
    session_2 = [make_record("B", 130, "T2"), make_record("C", 90, "T2")]

    result = compute_overall_ranking("A", [session_1, session_2])

    assert result.data.total_tests == 1
    assert result.data.average_rank == 1


def test_classement_global_aucune_session():
    result = compute_overall_ranking("A", [])

    assert result.success is False
    assert result.data is None
    assert result.error


# --- Réussite, badges, niveau ---

def test_seuil_de_reussite():
    assert is_passing(make_record(total=114)) is True
    assert is_passing(make_record(total=113)) is False


def test_badges_sans_resultat():
    badges = compute_badges("A", [])

    assert len(badges) == 6
    assert not any(b.earned for b in badges)


def test_badges_obtenus():
    records = [
        make_record("A", 120, anatomy=12, oriental_medicine_overview=30, meridian_points=20),
        make_record("A", 80, clinical_medicine_overview=20, clinical_medicine_detail=20),
    ]
    latest = [make_record("B", 150), make_record("A", 120), make_record("C", 100), make_record("D", 90)]

    earned = {b.id for b in compute_badges("A", records, latest) if b.earned}

    assert earned == {"first_test", "passing_score", "perfect_anatomy", "oriental_expert",
                      "clinical_expert", "top_rank"}


def test_badge_top_rank_hors_podium():
    records = [make_record("A", 60)]
    latest = [make_record("B", 150), make_record("C", 120), make_record("D", 100), make_record("A", 60)]

    badges = {b.id: b.earned for b in compute_badges("A", records, latest)}

    assert badges["top_rank"] is False
    assert badges["passing_score"] is False
    assert badges["first_test"] is True


def test_niveau_calcul():
    records = [make_record(total=160), make_record(total=120), make_record(total=50)]

    result = compute_level(records)

    # 3 examens (30) + 2 réussites (40) + 1 note élevée (30) = 100
    assert result.success is True
    assert result.data.experience == 100
    assert result.data.level == 2
    assert result.data.next_level == 200
    assert result.data.progress == 0
    assert result.data.remaining_exp == 100


def test_niveau_sans_resultat():
    result = compute_level([])

    assert result.success is False
    assert result.data is None


# --- Analyse et statistiques ---

def test_analyse_licences():
    record = make_record(total=None, anatomy=100, acupuncture_theory=14, moxibustion_theory=10)

    analysis = analyze_record(record)

    assert analysis.common_score == 100
    assert analysis.acupuncturist_score == 114
    assert analysis.acupuncturist_passing is True
    assert analysis.moxibustionist_passing is False
    assert analysis.passing is False


def test_statistiques_session():
    records = [make_record("A", 100, anatomy=10), make_record("B", 120), make_record("C", 140, anatomy=20)]

    result = summarize_sitting(records)

    assert result.success is True
    assert result.data.participant_count == 3
    assert result.data.average_score == 120
    assert result.data.max_score == 140
    assert result.data.min_score == 100
    assert result.data.median_score == 120
    assert result.data.subject_averages["anatomy"] == 15
    assert result.data.subject_averages["pathology"] == 0


def test_statistiques_session_vide():
    assert summarize_sitting([]).success is False


def test_evaluation_seuils():
    record = make_record(anatomy=12, physiology=5, pathology=3, meridian_points=8)
    passing = {"anatomy": 10, "physiology": 10, "meridian_points": 10}
    failing = {"anatomy": 4, "physiology": 6, "meridian_points": 4}

    evaluation = evaluate_criteria(record, passing, failing)

    assert evaluation == {"anatomy": "passing", "physiology": "failing", "meridian_points": "borderline"}
