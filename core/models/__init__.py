from .common import ActiveManager, Notification
from .project import Project, ProjectStatus, Vote, CrowdfundThreshold, ThresholdStatus
from .campaign import Campaign, CampaignStatus, CampaignMilestone
