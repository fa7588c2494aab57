"""Enumerations shared by the native entity types.

Documents store enum members by *name*; the values are only meaningful to
the native side (display labels for roles, ordinals for the rest).
"""

from __future__ import annotations

from enum import Enum


class TagType(Enum):
    other = 0
    award = 1
    venue = 2
    tapeout = 3


class NewsType(Enum):
    other = 0
    award = 1
    publication = 2
    presentation = 3
    tapeout = 4
    newmember = 5
    graduation = 6


class MemberRole(Enum):
    # alumni status is carried by MemberInfo.when_left, so a member keeps the
    # most significant role held: PhD > Postdoc > MS > UG > visitor
    other = "Other"
    pi = "Principle Investigator"
    phd = "Ph.D."
    ms = "Master"
    ug = "Undergrad"
    postdoc = "Postdoc"
    staff = "Staff"
    visitor = "Visitor"


class Icon(Enum):
    link = 0
    pdf = 1
    video = 2
    github = 3
    website = 4
    gscholar = 5
    orcid = 6
    linkedin = 7
    twitter = 8
    instagram = 9
    facebook = 10
    youtube = 11
    chip = 12
    medal = 13
    calendar = 14
    document = 15
    smiley = 16
    graduation = 17
    userplus = 18
