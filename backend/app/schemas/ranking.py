"""
Schémas Pydantic pour les classements, badges et niveaux.

Les résultats de consultation sont "étiquetés" : success + error + data.
Un échec (aucun résultat, erreur de requête) n'est jamais une exception côté appelant.
"""

import datetime as dt
from typing import Dict, List, Optional

from pydantic import BaseModel


class RankedRecord(BaseModel):
    """Ligne de classement d'une session d'examen."""
    id: Optional[int] = None
    student_id: str
    test_name: str
    test_date: Optional[dt.date] = None
    total_score: float
    rank: int


class OverallRanking(BaseModel):
    average_rank: int
    best_rank: int
    best_test: str
    percentile: int
    total_tests: int


class Badge(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    color: str
    earned: bool = False


class StudentLevel(BaseModel):
    level: int
    experience: int
    next_level: int
    progress: float
    remaining_exp: int


class RecordAnalysis(BaseModel):
    """Scores par groupe de matières et réussite aux deux licences (はり師 / きゅう師)."""
    student_id: str
    total_score: float
    basic_medicine_score: float
    clinical_medicine_score: float
    oriental_medicine_score: float
    specialized_score: float
    common_score: float
    acupuncturist_score: float
    moxibustionist_score: float
    acupuncturist_passing: bool
    moxibustionist_passing: bool
    passing: bool


class SittingSummary(BaseModel):
    """Statistiques d'une session d'examen."""
    participant_count: int
    average_score: float
    std_deviation: float
    max_score: float
    min_score: float
    median_score: float
    acupuncturist_passing_count: int
    acupuncturist_passing_rate: float
    moxibustionist_passing_count: int
    moxibustionist_passing_rate: float
    subject_averages: Dict[str, float]


class RankingListResult(BaseModel):
    success: bool
    error: Optional[str] = None
    data: List[RankedRecord] = []


class OverallRankingResult(BaseModel):
    success: bool
    error: Optional[str] = None
    data: Optional[OverallRanking] = None


class BadgesResult(BaseModel):
    success: bool
    error: Optional[str] = None
    badges: List[Badge] = []


class LevelResult(BaseModel):
    success: bool
    error: Optional[str] = None
    data: Optional[StudentLevel] = None


class SittingSummaryResult(BaseModel):
    success: bool
    error: Optional[str] = None
    data: Optional[SittingSummary] = None
