"""
Configuration centrale de l'application via variables d'environnement.
Charger depuis un fichier .env en développement.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Base de données (chaîne vide = non configurée → DatabaseConfigurationError)
    DATABASE_URL: str = ""

    # SMTP — diffusion des annonces par email
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""
    SMTP_USE_TLS: bool = True
    MAIL_SUBJECT_PREFIX: str = "[Portail école] "

    # Classements : "ordinal" (1, 2, 3 même à égalité) ou "dense" (1, 1, 2)
    RANK_TIE_POLICY: Literal["ordinal", "dense"] = "ordinal"

    # Comptes de test "login:motdepasse,login:motdepasse".
    # Acceptés uniquement en développement lorsque la base n'est pas configurée.
    FIXTURE_ACCOUNTS: str = ""

    # Environnement
    ENV: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def fixture_accounts(self) -> dict[str, str]:
        """Retourne les comptes de test sous forme {login: mot_de_passe}."""
        accounts = {}
        for pair in self.FIXTURE_ACCOUNTS.split(","):
            login, sep, password = pair.strip().partition(":")
            if sep and login and password:
                accounts[login] = password
        return accounts


settings = Settings()
