"""Fixed strategy document used by demo mode and as a UI fixture."""

from __future__ import annotations

from src.strategy.models import StrategyResult

DEMO_IMAGE_PREVIEW = (
    "https://images.unsplash.com/photo-1531403009284-440f080d1e12"
    "?auto=format&fit=crop&q=80&w=2940"
)

DEMO_STRATEGY = StrategyResult.model_validate(
    {
        "okrs": [
            {
                "objective": "Launch Stratify MVP and achieve 1000 active users",
                "key_results": [
                    "Reach 5,000 unique website visitors",
                    "Achieve 20% sign-up conversion rate",
                    "Maintain < 2s average processing latency",
                ],
            },
            {
                "objective": "Establish Market Presence in Enterprise Sector",
                "key_results": [
                    "Secure 3 beta partners from Fortune 500",
                    "Publish 2 case studies on efficiency gains",
                    "Integrate with Jira and Salesforce",
                ],
            },
        ],
        "action_items": [
            {
                "title": "Finalize Gemini API integration",
                "owner": "Dev Team",
                "duration": "1 week",
                "priority": "High",
            },
            {
                "title": "Design landing page marketing assets",
                "owner": "Sarah",
                "duration": "3 days",
                "priority": "Medium",
            },
            {
                "title": "Conduct security audit for data compliance",
                "owner": "Alex",
                "duration": "2 weeks",
                "priority": "High",
            },
            {
                "title": "Draft user documentation",
                "owner": "Jamie",
                "duration": "1 week",
                "priority": "Low",
            },
        ],
        "timeline": [
            {
                "phase": "Alpha Release",
                "start_date": "2025-12-01",
                "end_date": "2025-12-14",
                "description": "Internal testing and core feature validation",
            },
            {
                "phase": "Beta Launch",
                "start_date": "2025-12-15",
                "end_date": "2025-12-30",
                "description": "Public beta with waitlist access",
            },
            {
                "phase": "V1.0 Go-Live",
                "start_date": "2026-01-10",
                "end_date": "2026-01-31",
                "description": "Full public launch and marketing push",
            },
        ],
        "stakeholders": [
            {"name": "Executive Board", "role": "Sponsor", "influence": "High", "interest": "High"},
            {"name": "Product Team", "role": "Execution", "influence": "High", "interest": "High"},
            {
                "name": "Marketing Dept",
                "role": "Promotion",
                "influence": "Medium",
                "interest": "Medium",
            },
            {
                "name": "Legal & Compliance",
                "role": "Reviewer",
                "influence": "High",
                "interest": "Low",
            },
        ],
        "risks": [
            {
                "description": "API rate limits exceeded during launch",
                "severity": "High",
                "mitigation": "Implement robust caching and quota management",
            },
            {
                "description": "Low user adoption of advanced features",
                "severity": "Medium",
                "mitigation": "Create interactive tutorials and onboarding flow",
            },
            {
                "description": "Browser compatibility issues",
                "severity": "Low",
                "mitigation": "Extensive cross-browser testing suite",
            },
        ],
        "automations": [
            {
                "type": "task.create",
                "payload": {"title": "Set up analytics dashboard", "owner": "Dev Team"},
            },
            {
                "type": "notify.channel",
                "payload": {"channel": "#launches", "message": "Beta is live!"},
            },
        ],
    }
)
