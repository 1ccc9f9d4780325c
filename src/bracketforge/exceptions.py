"""Exceptions for use in BracketForge"""

# BracketForge
# Copyright (C) 2025  BracketForge developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.


# ========== Base Application Exception ==========


class BracketForgeException(Exception):
    """Base exception for all BracketForge errors.

    All custom exceptions in the application should inherit from this class.
    This enables catching all application-specific errors with a single except clause.
    """

    pass


# ========== Validation Exceptions ==========


class ValidationException(BracketForgeException):
    """Base exception for input validation errors."""

    pass


class InvalidScoreException(ValidationException):
    """Raised when a submitted match score is not a valid result.

    Both players forfeiting, negative set counts and equal non-forfeit
    scores (including 0-0) are all rejected; the domain has no draws.
    """

    pass


class InvalidBracketPositionsException(ValidationException):
    """Raised when a bracket position list does not fit the bracket."""

    pass


class InvalidSeedCountException(ValidationException):
    """Raised when the requested number of seeds is not allowed."""

    pass


# ========== Configuration Exceptions ==========


class ConfigurationException(BracketForgeException):
    """Base exception for configuration errors."""

    pass


class InvalidTournamentConfigException(ConfigurationException):
    """Raised when a tournament configuration blob is invalid."""

    pass


class PointExchangeTableException(ConfigurationException):
    """Raised when point exchange brackets leave gaps or overlap."""

    pass


# ========== Tournament Exceptions ==========


class TournamentException(BracketForgeException):
    """Base exception for tournament-related errors."""

    pass


class TournamentNotFoundException(TournamentException):
    """Raised when a tournament does not exist."""

    pass


class TournamentStateException(TournamentException):
    """Raised when tournament is in an invalid state for the requested operation."""

    pass


class CompoundMatchUpdateException(TournamentException):
    """Raised when a match update is sent to a compound tournament."""

    pass


class NotReadyException(TournamentException):
    """Raised when an operation is requested before the tournament is ready.

    The caller should re-request once the tournament state has changed.
    """

    pass


# ========== Match Exceptions ==========


class MatchException(BracketForgeException):
    """Base exception for match-related errors."""

    pass


class MatchNotFoundException(MatchException):
    """Raised when a match or bracket slot does not exist."""

    pass


class MatchOwnershipException(MatchException):
    """Raised when a match does not belong to the addressed tournament."""

    pass


class ByeMatchException(MatchException):
    """Raised when attempting to play a BYE slot."""

    pass


class BracketAdvancementException(MatchException):
    """Raised when a bracket winner cannot be advanced."""

    pass


# ========== Plugin Exceptions ==========


class PluginException(BracketForgeException):
    """Base exception for tournament format plugin errors."""

    pass


class UnknownTournamentTypeException(PluginException):
    """Raised when no plugin is registered for a tournament type."""

    pass


class UnsupportedPluginRequestException(PluginException):
    """Raised when a plugin does not support a requested resource."""

    pass


# ========== Store Exceptions ==========


class StoreException(BracketForgeException):
    """Base exception for persistence errors."""

    pass


class EntityNotFoundException(StoreException):
    """Raised when a stored entity cannot be found."""

    pass


class TransactionException(StoreException):
    """Raised when a store transaction cannot be completed."""

    pass
