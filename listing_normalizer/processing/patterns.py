"""
Description:
    Pattern batteries for the property feature extractor.

    Every field is an ordered tuple of PatternRule objects. Rules are tried top
    to bottom and the first one whose handler returns a value wins, so
    precedence is the order of the tuple. Handlers return None to reject a
    candidate (out of range, renovation year, ...), which lets the search move
    on to the next candidate or rule.

    All patterns are case-insensitive and written for Portuguese listings.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional, Tuple

from listing_normalizer.utils.clean_text import clean_text, extract_number, format_number

Handler = Callable[["re.Match", str], Optional[str]]

NUMBER = r'(\d+(?:[.,]\d+)?)'
MIN_YEAR = 1850
MAX_BATHROOMS = 20
MAX_ROOMS = 10


def first_group(match: "re.Match", text: str) -> Optional[str]:
    return clean_text(match.group(1)) or None


@dataclass(frozen=True)
class PatternRule:
    name: str
    pattern: re.Pattern
    handler: Handler = first_group
    # Try every occurrence in the text instead of only the first one
    scan_all: bool = False

    def apply(self, text: str) -> Optional[str]:
        if self.scan_all:
            matches = self.pattern.finditer(text)
        else:
            match = self.pattern.search(text)
            matches = [match] if match else []
        for match in matches:
            value = self.handler(match, text)
            if value is not None:
                return value
        return None


def rule(name: str, regex: str, handler: Handler = first_group, scan_all: bool = False) -> PatternRule:
    return PatternRule(name, re.compile(regex, re.IGNORECASE), handler, scan_all)


def first_match(rules: Iterable[PatternRule], text: str) -> Optional[str]:
    for pattern_rule in rules:
        value = pattern_rule.apply(text)
        if value is not None:
            return value
    return None


# --- HANDLERS ---

def area_value(match, text):
    number = extract_number(match.group(1))
    return format_number(number) if number else None


def construction_year(match, text):
    year = int(match.group(1))
    if not MIN_YEAR <= year <= date.today().year:
        return None
    before = text[:match.start(1)].lower()
    if 'renovado' in before or 'renovação' in before:
        return None
    return str(year)


def ground_floor(match, text):
    return 'R/C'


def basement(match, text):
    return 'Cave'


def floor_text(match, text):
    return clean_text(match.group(0))


def bathroom_count(match, text):
    count = int(match.group(1))
    return str(count) if 0 <= count <= MAX_BATHROOMS else None


def t_code(match, text):
    extra = f"+{match.group(2)}" if match.group(2) else ''
    return f"T{int(match.group(1))}{extra}"


def room_count(match, text):
    count = int(match.group(1))
    return f"T{count}" if 0 <= count <= MAX_ROOMS else None


def upper_code(match, text):
    return match.group(1).upper()


def condition_label(match, text):
    condition = clean_text(match.group(1))
    if not condition:
        return None
    return CONDITION_PHRASES_MAP.get(condition.lower(), condition)


# --- AREAS ---

USEFUL_AREA_RULES: Tuple[PatternRule, ...] = (
    rule('area_util_m2', r'área\s+útil[:\s]+' + NUMBER + r'\s*m²', area_value),
    rule('area_util', r'área\s+útil[:\s]+' + NUMBER, area_value),
    rule('area_interior_m2', r'área\s+interior[:\s]+' + NUMBER + r'\s*m²', area_value),
    rule('area_interior', r'área\s+interior[:\s]+' + NUMBER, area_value),
    rule('util_m2', r'útil[:\s]+' + NUMBER + r'\s*m²', area_value),
)

TOTAL_AREA_RULES: Tuple[PatternRule, ...] = (
    rule('area_bruta_m2', r'área\s+bruta[:\s]+' + NUMBER + r'\s*m²', area_value),
    rule('area_bruta', r'área\s+bruta[:\s]+' + NUMBER, area_value),
    rule('area_total_m2', r'área\s+total[:\s]+' + NUMBER + r'\s*m²', area_value),
    rule('area_total', r'área\s+total[:\s]+' + NUMBER, area_value),
    rule('area_construcao_m2', r'área\s+de\s+construção[:\s]+' + NUMBER + r'\s*m²', area_value),
    rule('area_construcao', r'área\s+de\s+construção[:\s]+' + NUMBER, area_value),
    rule('area_construida_m2', r'área\s+construída[:\s]+' + NUMBER + r'\s*m²', area_value),
    rule('area_construida', r'área\s+construída[:\s]+' + NUMBER, area_value),
    rule('area_m2', r'área[:\s]+' + NUMBER + r'\s*m²', area_value),
    rule('tamanho', r'tamanho[:\s]+' + NUMBER, area_value),
)

# --- CONSTRUCTION YEAR ---

YEAR_RULES: Tuple[PatternRule, ...] = (
    rule('ano_de_construcao', r'ano\s+de\s+construção[:\s]+(\d{4})', construction_year, scan_all=True),
    rule('construido_em', r'construído\s+em\s+(\d{4})', construction_year, scan_all=True),
    rule('ano', r'ano[:\s]+(\d{4})', construction_year, scan_all=True),
    rule('construcao', r'construção[:\s]+(\d{4})', construction_year, scan_all=True),
    rule('bare_year', r'\b((?:19|20)\d{2})\b', construction_year, scan_all=True),
)

# --- FLOOR ---

FLOOR_RULES: Tuple[PatternRule, ...] = (
    rule('ground_floor', r'(r/c|rés\s*do\s*chão|térreo)', ground_floor),
    rule('cave_plus_floors', r'(cave\s*\+\s*\d+\s*pisos?)', basement),
    rule('sub_cave', r'(sub-cave)', basement),
    rule('cave', r'(cave)', basement),
    rule('nth_andar', r'(\d+)\s*(?:º|°)?\s*andar', floor_text),
    rule('piso_n', r'piso\s+(\d+)', floor_text),
    rule('andar_label', r'andar[:\s]+(\d+)', floor_text),
)

# --- BATHROOMS ---

BATHROOM_RULES: Tuple[PatternRule, ...] = (
    rule('n_casas_de_banho', r'(\d+)\s+casas?\s+de\s+banho', bathroom_count),
    rule('casas_de_banho_label', r'casas?\s+de\s+banho[:\s]+(\d+)', bathroom_count),
    rule('wc_label', r'wc[:\s]+(\d+)', bathroom_count),
    rule('n_wc', r'(\d+)\s+wc', bathroom_count),
    rule('banheiros_label', r'banheiros?[:\s]+(\d+)', bathroom_count),
    rule('n_banheiros', r'(\d+)\s+banheiros?', bathroom_count),
)

# --- CONDITION ---

# Checked in order as whole words: earlier phrases shadow later ones
CONDITION_PHRASES: Tuple[Tuple[str, str], ...] = (
    ('novo', 'novo'),
    ('nova construção', 'novo'),
    ('nova', 'novo'),
    ('renovado', 'renovado'),
    ('renovada', 'renovado'),
    ('usado', 'usado'),
    ('usada', 'usado'),
    ('por recuperar', 'por renovar'),
    ('por renovar', 'por renovar'),
    ('para renovar', 'por renovar'),
    ('para recuperar', 'por renovar'),
    ('em construção', 'em construção'),
    ('para remodelar', 'por renovar'),
    ('restaurar', 'por renovar'),
    ('restauro', 'por renovar'),
    ('excelente', 'excelente'),
    ('bom', 'bom'),
    ('razoável', 'razoável'),
    ('razoavel', 'razoável'),
)
CONDITION_PHRASES_MAP = dict(CONDITION_PHRASES)

CONDITION_RULES: Tuple[PatternRule, ...] = (
    rule('condicao_label', r'condição[:\s]+([^,\n]+)', condition_label),
    rule('estado_label', r'estado[:\s]+([^,\n]+)', condition_label),
    rule('fase_de_acabamento', r'fase\s+de\s+acabamento[:\s]+([^,\n]+)', condition_label),
)

# --- PROPERTY TYPE ---

TYPE_PHRASES: Tuple[Tuple[str, str], ...] = (
    ('apartamento', 'apartamento'),
    ('apto', 'apartamento'),
    ('apartment', 'apartamento'),
    ('moradia', 'moradia'),
    ('casa', 'moradia'),
    ('villa', 'moradia'),
    ('vila', 'moradia'),
    ('terreno', 'terreno'),
    ('lote', 'terreno'),
    ('loja', 'loja'),
    ('comercial', 'loja'),
    ('armazém', 'armazém'),
    ('armazem', 'armazém'),
    ('escritório', 'escritório'),
    ('escritorio', 'escritório'),
    ('office', 'escritório'),
    ('garagem', 'garagem'),
    ('quinta', 'quinta'),
    ('quintal', 'quinta'),
    ('prédio', 'prédio'),
    ('predio', 'prédio'),
)

# --- TIPOLOGY ---

TIPOLOGY_RULES: Tuple[PatternRule, ...] = (
    # A T-code must start a word: "ApartamentoT2" is not read as T2
    rule('t_code', r'\bT\s*(\d+)(?:\+(\d+))?', t_code),
    rule('room_count', r'(\d+)\s+(?:assoalhadas?|quartos?|bedrooms?)', room_count),
    rule('tipologia_label', r'tipologia[:\s]+(T\d\+?\d?)', upper_code),
    rule('tipo_label', r'tipo[:\s]+(T\d\+?\d?)', upper_code),
)


def phrase_lookup(phrases: Iterable[Tuple[str, str]], text: str, whole_words: bool = False) -> Optional[str]:
    """
    Label of the first phrase found in `text` (already lowercased).
    With `whole_words`, "nova" does not match inside "renovada".
    """
    for phrase, label in phrases:
        if whole_words:
            if re.search(r'\b' + re.escape(phrase) + r'\b', text):
                return label
        elif phrase in text:
            return label
    return None
