"""Hand-picked articles served when no live feed yields anything usable."""

from __future__ import annotations

from typing import List

from nuclearpulse.models import Article, Tag
from nuclearpulse.services.scoring import why_it_matters

__all__ = ["CURATED_ENTRIES", "CURATED_SOURCE_ID", "curated"]

CURATED_SOURCE_ID = "curated"
CURATED_RELEVANCE = 10
CURATED_ENGAGEMENT = 35

# (title, source, tag, url, date label)
CURATED_ENTRIES = (
    (
        "Microsoft restarts Three Mile Island to power its data centers with nuclear",
        "Reuters",
        Tag.INDUSTRY,
        "https://www.reuters.com/business/energy/microsoft-deal-resurrect-three-mile-island-nuclear-plant-2024-09-20/",
        "Sep 2024",
    ),
    (
        "Google signs deal for nuclear power from Kairos Power's small modular reactors",
        "Reuters",
        Tag.INNOVATION,
        "https://www.reuters.com/technology/google-inks-deal-nuclear-power-kairos-power-2024-10-14/",
        "Oct 2024",
    ),
    (
        "Amazon signs nuclear energy agreements for multiple advanced reactors",
        "Amazon",
        Tag.INDUSTRY,
        "https://www.aboutamazon.com/news/sustainability/amazon-nuclear-energy-small-modular-reactor-agreements",
        "Oct 2024",
    ),
    (
        "Ontario breaks ground on Canada's first commercial small modular reactor",
        "OPG",
        Tag.EXPANSION,
        "https://www.opg.com/media-room/news-releases/2025/ontario-power-generation-breaks-ground-on-canadas-first-commercial-smr/",
        "Jan 2025",
    ),
    (
        "COP28: 22 nations pledge to triple nuclear capacity by 2050",
        "World Nuclear News",
        Tag.POLICY,
        "https://www.world-nuclear-news.org/articles/cop-28-world-leaders-call-for-tripling-of-nuclear-capacity",
        "Dec 2023",
    ),
    (
        "TerraPower begins construction on Natrium sodium-cooled fast reactor in Wyoming",
        "TerraPower",
        Tag.INNOVATION,
        "https://www.terrapower.com/natrium-construction-begins-in-kemmerer-wyoming/",
        "Jun 2024",
    ),
    (
        "France extends nuclear reactor lifespans to 60 years with safety investment",
        "Reuters",
        Tag.POLICY,
        "https://www.reuters.com/business/energy/france-plans-extend-nuclear-reactor-lifespans-60-years-2024-11-15/",
        "Nov 2024",
    ),
    (
        "EU taxonomy officially includes nuclear as sustainable investment",
        "European Commission",
        Tag.POLICY,
        "https://finance.ec.europa.eu/sustainable-finance/tools-and-standards/eu-taxonomy-sustainable-activities_en",
        "2023",
    ),
    (
        "Rolls-Royce SMR secures UK government backing for factory-built reactor programme",
        "Rolls-Royce",
        Tag.INDUSTRY,
        "https://www.rolls-royce.com/media/press-releases/2024/rolls-royce-smr-secures-uk-government-backing-for-factory.aspx",
        "Oct 2024",
    ),
    (
        "Poland signs agreement with Westinghouse for six AP1000 reactors",
        "World Nuclear News",
        Tag.EXPANSION,
        "https://www.world-nuclear-news.org/articles/poland-and-westinghouse-sign-nuclear-power-plant-project-agreement",
        "Oct 2024",
    ),
    (
        "Kairos Power receives NRC construction permit for Hermes test reactor",
        "Kairos Power",
        Tag.RESEARCH,
        "https://kairospower.com/press-releases/kairos-power-receives-construction-permit-from-the-nrc/",
        "Dec 2023",
    ),
    (
        "US DOE invests $900 million in advanced nuclear reactor demonstrations",
        "Department of Energy",
        Tag.RESEARCH,
        "https://www.energy.gov/ne/articles/doe-announces-900-million-advanced-nuclear-reactor-demonstrations",
        "Nov 2023",
    ),
)


def curated() -> List[Article]:
    """Return the curated fallback articles. Performs no network access."""

    return [
        Article(
            title=title,
            url=url,
            source=source,
            tag=tag,
            published_at=None,
            date_label=label,
            relevance_score=CURATED_RELEVANCE,
            engagement_score=CURATED_ENGAGEMENT,
            excerpt=None,
            why_it_matters=why_it_matters(tag),
            source_id=CURATED_SOURCE_ID,
            is_fallback=True,
        )
        for title, source, tag, url, label in CURATED_ENTRIES
    ]
