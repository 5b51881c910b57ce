from pydantic import BaseModel, Field
from typing import Optional

class ProviderSettings(BaseModel):
    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    timeout_sec: int = 30

class ProvidersConfig(BaseModel):
    claude: ProviderSettings = Field(default_factory=ProviderSettings)
    openai: ProviderSettings = Field(default_factory=ProviderSettings)
    gemini: ProviderSettings = Field(default_factory=ProviderSettings)
    copilot: ProviderSettings = Field(default_factory=ProviderSettings)

class JiraConfig(BaseModel):
    base_url: Optional[str] = None
    email: Optional[str] = None
    api_token: Optional[str] = None

class GitHubConfig(BaseModel):
    token: Optional[str] = None

class GitConfig(BaseModel):
    base_branch: str = "main"
    include_detailed_diff: bool = True
    max_diff_lines: int = 500

class PromptLimits(BaseModel):
    description_preview: int = Field(500, description="Ticket description characters kept in the summary prompt")
    summary_template_limit: Optional[int] = Field(
        None,
        description="Template characters kept in the summary prompt; None keeps the whole template",
    )
    summary_diff_limit: int = Field(2000, description="Per-file diff characters in the summary prompt")
    description_diff_limit: int = Field(1000, description="Per-file diff characters in the description prompt")
    overall_diff_limit: int = Field(3000, description="Overall diff characters in either prompt")
    line_number_preview: int = Field(10, description="Added/removed line numbers listed per file")
    key_line_links: int = Field(3, description="Line-anchor links emitted per file")

class GenerationConfig(BaseModel):
    fallback_on_error: bool = Field(True, description="Fall back to template-based content when the AI call fails")


class Config(BaseModel):
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig, description="AI provider credentials and models")
    jira: JiraConfig = Field(default_factory=JiraConfig, description="Jira connection")
    github: GitHubConfig = Field(default_factory=GitHubConfig, description="GitHub connection")
    git: GitConfig = Field(default_factory=GitConfig, description="Change collection settings")
    prompt: PromptLimits = Field(default_factory=PromptLimits, description="Prompt length limits")
    generation: GenerationConfig = Field(default_factory=GenerationConfig, description="Generation behaviour")
