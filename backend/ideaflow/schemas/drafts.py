"""Draft output schemas, one per draft-producing step.

Field descriptions are rendered into the generation prompt as the output
contract, so they describe what the model must return, not how the UI
uses the value.
"""

from typing import Literal

from pydantic import BaseModel, Field

HookType = Literal["pain", "outcome", "fear"]


class ProblemDefinitionDraft(BaseModel):
    """Step 1."""

    problemStatement: str = Field(
        description="Specific problem statement naming the audience, how often and how badly it hurts, and why current solutions fail."
    )
    targetCustomer: str = Field(
        description="Precise customer profile: role, company stage or context, budget authority, and why they are the most desperate early adopter."
    )
    painPoints: list[str] = Field(
        min_length=3,
        max_length=8,
        description="Distinct pain points, each stating what hurts, how often, and what it costs.",
    )
    existingSolutions: str | None = Field(
        default=None, description="Current solutions or workarounds and where each falls short."
    )


class MarketResearchDraft(BaseModel):
    """Step 2."""

    marketSize: str = Field(description="TAM/SAM/SOM estimate with methodology and named sources.")
    competitors: list[str] = Field(min_length=1, max_length=8, description="Direct and indirect competitors.")
    trends: str = Field(description="3-5 sentences on tailwinds and headwinds with specific data points.")
    opportunities: str | None = Field(
        default=None, description="Specific structural gaps or underserved segments and why incumbents miss them."
    )


class ValuePropositionDraft(BaseModel):
    """Step 3."""

    coreOutcome: str = Field(description="The single most important measurable outcome a user gets.")
    mvpType: Literal["manual", "nocode", "lightweight"] = Field(
        description="Fastest credible path to test the core assumption."
    )
    valueProposition: str | None = Field(
        default=None,
        description="For [target], who [need], [product] is a [category] that [key benefit]. Unlike [alternative], we [differentiator].",
    )
    differentiation: str | None = Field(default=None, description="The defensible wedge and why it is hard to copy.")
    keyBenefits: list[str] | None = Field(default=None, description="3-5 benefits stated as outcomes.")
    unfairAdvantage: str | None = Field(default=None, description="Structural advantage, or an honest statement that none exists yet.")


class Hook(BaseModel):
    type: HookType
    text: str = Field(description="A bold declarative statement, never a question.")


class CustomerValidationDraft(BaseModel):
    """Step 4."""

    hooks: list[Hook] = Field(min_length=3, max_length=3, description="Exactly one pain, one outcome, and one fear hook.")
    recommendedHookType: HookType
    keyFindings: str = Field(description="5-8 sentences synthesising public evidence, citing sources by name.")
    customerInsights: list[str] = Field(min_length=3, max_length=8)
    marketEvidence: list[str] = Field(min_length=2, max_length=6)
    willingnessEstimate: Literal["not_willing", "somewhat", "very_willing", "eager"]
    researchSampleSize: int = Field(description="Number of data points synthesised.")
    interviewQuestions: list[str] = Field(
        min_length=5, max_length=10, description="Open, non-leading questions that try to falsify the riskiest assumptions."
    )


class BusinessModelDraft(BaseModel):
    """Step 5."""

    timeAvailabilityHours: float = Field(description="Realistic weekly hours needed.")
    toolPreference: Literal["manual", "nocode", "code"]
    skillLevel: Literal["beginner", "intermediate", "advanced"]
    budgetRange: Literal["0-50", "50-200", "200-1000", "1000+"]
    platformTarget: Literal["web", "mobile", "both"]
    revenueModel: str | None = None
    pricingStrategy: str | None = Field(default=None, description="Concrete price points anchored in competitor pricing.")
    costStructure: str | None = None


class GoToMarketDraft(BaseModel):
    """Step 6."""

    launchChannels: list[Literal["community", "cold_outreach", "ads", "partners"]] = Field(min_length=1, max_length=4)
    recommendedTouchCount: int = Field(description="How many people to reach in the first launch push.")
    outreachScripts: list[str] = Field(
        min_length=3, max_length=3, description="Three copy-pasteable outreach messages, one per channel or segment."
    )


class BusinessPlanDraft(BaseModel):
    """Step 8."""

    companyName: str
    missionStatement: str
    visionStatement: str
    elevatorPitch: str
    problemStatement: str
    solutionOverview: str
    targetMarket: str
    marketSize: str
    competitiveLandscape: str
    uniqueValueProp: str
    revenueModel: str
    unitEconomics: str
    financialProjections: str = Field(description="3-year projection with stated assumptions and scenarios.")
    fundingRequirements: str | None = None
    goToMarket: str
    salesStrategy: str
    marketingPlan: str
    operationsPlan: str
    technologyStack: str
    teamStructure: str
    milestones: str
    riskAnalysis: str
    legalCompliance: str | None = None
    exitStrategy: str | None = None
    kpis: str


class BrandingDraft(BaseModel):
    """Step 9."""

    brandName: str
    brandStory: str
    colorPalette: list[str] = Field(min_length=3, max_length=5, description="Hex colour codes with rationale.")
    typography: str
    brandVoice: str
    visualDirection: str
    logoGuidelines: str
    brandPersonalityProfile: str


class TitledText(BaseModel):
    title: str
    description: str


class DiscountCard(TitledText):
    ctaText: str


class IconCard(TitledText):
    icon: str = Field(description="A single emoji.")


class Stat(BaseModel):
    number: str
    suffix: str
    label: str


class Category(BaseModel):
    title: str


class Testimonial(BaseModel):
    text: str
    name: str
    role: str


class BlogPost(BaseModel):
    title: str
    excerpt: str


class ColorScheme(BaseModel):
    primary: str
    secondary: str
    accent: str
    background: str
    text: str


class ImageSearchTerms(BaseModel):
    hero: str
    discount1: str
    discount2: str
    discount3: str
    product1: str
    product2: str
    product3: str
    product4: str
    product5: str
    product6: str
    about: str
    category1: str
    category2: str
    category3: str
    category4: str
    testimonial: str
    blog1: str
    blog2: str
    blog3: str


class WebDesignDraft(BaseModel):
    """Step 10. Landing page copy injected into fixed template slots."""

    bannerSubtitle: str = Field(description="Exactly 2 words.")
    heroHeadline: str = Field(description="Exactly 7 words.")
    heroSubheadline: str = Field(description="Exactly 15 words.")
    heroCtaText: str = Field(description="Exactly 2 words.")
    heroImagePrompt: str = Field(description="2-3 sentence photorealistic image prompt, no text in image.")
    discountCards: list[DiscountCard] = Field(min_length=1, max_length=5)
    chooseSubtitle: str
    whyChooseHeadline: str
    whyChooseDescription: str
    benefits: list[IconCard] = Field(min_length=1, max_length=5)
    featuresSubtitle: str
    featuresSectionTitle: str
    products: list[IconCard] = Field(min_length=1, max_length=8)
    aboutSubtitle: str
    aboutHeadline: str
    aboutDescription: str
    aboutCtaText: str
    aboutStats: list[Stat] = Field(min_length=1, max_length=5)
    categoriesSubtitle: str
    categoriesHeadline: str
    categories: list[Category] = Field(min_length=1, max_length=6)
    offerSubtitle: str
    offerHeadline: str
    offerDescription: str
    offerCtaText: str
    offerProducts: list[TitledText] = Field(min_length=1, max_length=7)
    testimonialSubtitle: str
    testimonialHeadline: str
    testimonials: list[Testimonial] = Field(min_length=1, max_length=5)
    blogSubtitle: str
    blogHeadline: str
    blogPosts: list[BlogPost] = Field(min_length=1, max_length=5)
    newsletterTitle: str
    newsletterSubtitle: str
    finalCtaButtonText: str
    footerDescription: str
    footerTagline: str
    metaTitle: str = Field(description="50-60 characters.")
    metaDescription: str = Field(description="150-160 characters.")
    colorScheme: ColorScheme
    imageSearchTerms: ImageSearchTerms = Field(description="2-4 word stock photo queries specific to this business.")


class MarketStrategyDraft(BaseModel):
    """Step 11."""

    positioningStatement: str
    primaryChannels: list[str] = Field(min_length=1, max_length=6)
    competitiveStrategy: str
    pricingPosition: str
    messagingPillars: list[str] = Field(min_length=3, max_length=5)


class OperationFlowDraft(BaseModel):
    """Step 12."""

    customerJourney: list[str] = Field(min_length=3, max_length=10, description="Ordered journey stages.")
    coreProcesses: list[str] = Field(min_length=2, max_length=10)
    toolingStack: str
    supportModel: str
    operationalKpis: list[str] = Field(min_length=2, max_length=8)


class LaunchDraft(BaseModel):
    """Step 14."""

    launchChecklist: list[str] = Field(min_length=5, max_length=20)
    launchDateRecommendation: str
    successMetrics: list[str] = Field(min_length=2, max_length=8)
    contingencyPlan: str
