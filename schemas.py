"""
Database Schemas for the Student Collaboration App

Each Pydantic model corresponds to a MongoDB collection. The collection name
is the lowercase class name (e.g., ProjectInterest -> "projectinterest").
"""
from typing import List, Optional, Literal
from pydantic import BaseModel, Field, EmailStr
from datetime import datetime

Difficulty = Literal['beginner', 'intermediate', 'advanced']
Communication = Literal['discord', 'slack', 'teams', 'zoom', 'email', 'other']

# ------------------ Core Collections ------------------

class Link(BaseModel):
    platform: str
    url: str

class User(BaseModel):
    id: Optional[str] = Field(None, description="Document id as string")
    name: str
    email: EmailStr
    passwordHash: str = Field(..., description="bcrypt hash")
    image: Optional[str] = None  # avatar url
    githubUsername: Optional[str] = None
    bio: Optional[str] = None
    links: List[Link] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

class Project(BaseModel):
    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    description: str
    requirements: str
    techStack: List[str] = Field(..., min_length=1)  # display order preserved
    teamSize: int = Field(..., ge=1)
    timeframe: str
    difficulty: Difficulty
    category: str  # open set, see /api/categories
    commitment: str = '10-20'  # hours per week
    communication: Communication = 'discord'
    githubRequired: bool = False
    creatorId: str  # user id string
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

class ProjectInterest(BaseModel):
    id: Optional[str] = None
    userId: str
    projectId: str
    createdAt: Optional[datetime] = None

class ProjectMessage(BaseModel):
    id: Optional[str] = None
    content: str
    projectId: str
    senderId: str
    recipientId: str  # project creator at send time
    createdAt: Optional[datetime] = None
