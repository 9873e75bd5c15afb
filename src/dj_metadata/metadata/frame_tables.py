"""
Lookup tables for tag containers: known frame ids per version, readable
frame names, legacy genre list and picture types.
"""

from mutagen.id3 import TCON

# Legacy genre byte -> name (Winamp extended list, 192 entries)
GENRES = tuple(TCON.GENRES)

# Pseudo frames of the 128-byte legacy trailer: (id, offset, size)
ID3V10_LAYOUT = (
    ("TIT2", 3, 30),
    ("TPE1", 33, 30),
    ("TALB", 63, 30),
    ("TYER", 93, 4),
    ("COMM", 97, 30),
    ("TCON", 127, 1),
)

ID3V11_LAYOUT = (
    ("TIT2", 3, 30),
    ("TPE1", 33, 30),
    ("TALB", 63, 30),
    ("TYER", 93, 4),
    ("COMM", 97, 28),
    ("TRCK", 126, 1),
    ("TCON", 127, 1),
)

FRAMES_V22 = frozenset((
    'BUF', 'CNT', 'COM', 'CRA', 'CRM', 'ETC', 'EQU', 'GEO', 'IPL', 'LNK', 'MCI', 'MLL', 'PIC', 'POP', 'REV',
    'RVA', 'SLT', 'STC', 'TAL', 'TBP', 'TCM', 'TCO', 'TCR', 'TDA', 'TDY', 'TEN', 'TFT', 'TIM', 'TKE', 'TLA',
    'TLE', 'TMT', 'TOA', 'TOF', 'TOL', 'TOR', 'TOT', 'TP1', 'TP2', 'TP3', 'TP4', 'TPA', 'TPB', 'TRC', 'TRD',
    'TRK', 'TSI', 'TSS', 'TT1', 'TT2', 'TT3', 'TXT', 'TXX', 'TYE', 'UFI', 'ULT', 'WAF', 'WAR', 'WAS', 'WCM',
    'WCP', 'WPB', 'WXX',
))

FRAMES_V23 = frozenset((
    'AENC', 'APIC', 'COMM', 'COMR', 'ENCR', 'EQUA', 'ETCO', 'GEOB', 'GRID', 'IPLS', 'LINK', 'MCDI', 'MLLT',
    'OWNE', 'PRIV', 'PCNT', 'POPM', 'POSS', 'RBUF', 'RVAD', 'RVRB', 'SYLT', 'SYTC', 'TALB', 'TBPM', 'TCOM',
    'TCON', 'TCOP', 'TDAT', 'TDLY', 'TENC', 'TEXT', 'TFLT', 'TIME', 'TIT1', 'TIT2', 'TIT3', 'TKEY', 'TLAN',
    'TLEN', 'TMED', 'TOAL', 'TOFN', 'TOLY', 'TOPE', 'TORY', 'TOWN', 'TPE1', 'TPE2', 'TPE3', 'TPE4', 'TPOS',
    'TPUB', 'TRCK', 'TRDA', 'TRSN', 'TRSO', 'TSIZ', 'TSRC', 'TSSE', 'TYER', 'TXXX', 'UFID', 'USER', 'USLT',
    'WCOM', 'WCOP', 'WOAF', 'WOAR', 'WOAS', 'WORS', 'WPAY', 'WPUB', 'WXXX',
))

FRAMES_V24 = frozenset((
    'AENC', 'APIC', 'ASPI', 'COMM', 'COMR', 'ENCR', 'EQU2', 'ETCO', 'GEOB', 'GRID', 'LINK', 'MCDI', 'MLLT',
    'OWNE', 'PRIV', 'PCNT', 'POPM', 'POSS', 'RBUF', 'RVA2', 'RVRB', 'SEEK', 'SIGN', 'SYLT', 'SYTC', 'TALB',
    'TBPM', 'TCOM', 'TCON', 'TCOP', 'TDEN', 'TDLY', 'TDOR', 'TDRC', 'TDRL', 'TDTG', 'TENC', 'TEXT', 'TFLT',
    'TIPL', 'TIT1', 'TIT2', 'TIT3', 'TKEY', 'TLAN', 'TLEN', 'TMCL', 'TMED', 'TMOO', 'TOAL', 'TOFN', 'TOLY',
    'TOPE', 'TOWN', 'TPE1', 'TPE2', 'TPE3', 'TPE4', 'TPOS', 'TPRO', 'TPUB', 'TRCK', 'TRSN', 'TRSO', 'TSOA',
    'TSOP', 'TSOT', 'TSRC', 'TSSE', 'TSST', 'TXXX', 'UFID', 'USER', 'USLT', 'WCOM', 'WCOP', 'WOAF', 'WOAR',
    'WOAS', 'WORS', 'WPAY', 'WPUB', 'WXXX',
))

FRAMES_BY_VERSION = {2: FRAMES_V22, 3: FRAMES_V23, 4: FRAMES_V24}

# Frame ids starting with these are reserved for experimental use
EXPERIMENTAL_PREFIXES = ('X', 'Y', 'Z')

USER_TEXT_IDS = frozenset(('TXXX', 'TXX'))
USER_URL_IDS = frozenset(('WXXX', 'WXX'))
PICTURE_IDS = frozenset(('APIC', 'PIC'))

FRAME_NAMES = {
    'AENC': 'audioEncryption',
    'APIC': 'attachedPicture',
    'ASPI': 'audioSeekPointIndex',
    'COMM': 'comment',
    'COMR': 'commercialFrame',
    'ENCR': 'encryptionMethodRegistration',
    'EQUA': 'equalisation',
    'EQU2': 'equalisation2',
    'ETCO': 'eventTimingCodes',
    'GEOB': 'generalEncapsulatedObject',
    'GRID': 'groupIdentificationRegistration',
    'IPLS': 'involvedPeopleList',
    'LINK': 'linkedInformation',
    'MCDI': 'musicCDIdentifier',
    'MLLT': 'MPEGLocationLookupTable',
    'OWNE': 'ownership',
    'PRIV': 'private',
    'PCNT': 'playCounter',
    'POPM': 'popularimeter',
    'POSS': 'positionSynchronisationFrame',
    'RBUF': 'recommendedBufferSize',
    'RVA2': 'relativeVolumeAdjustment2',
    'RVAD': 'relativeVolumeAdjustment',
    'RVRB': 'reverb',
    'SEEK': 'seek',
    'SIGN': 'signature',
    'SYLT': 'synchronisedLyric',
    'SYTC': 'synchronisedTempoCodes',
    'TALB': 'album',
    'TBPM': 'bpm',
    'TCOM': 'composer',
    'TCON': 'contentType',
    'TCOP': 'copyright',
    'TDAT': 'date',
    'TDEN': 'encodingTime',
    'TDLY': 'playlistDelay',
    'TDOR': 'originalReleaseTime',
    'TDRC': 'recordingTime',
    'TDRL': 'releaseTime',
    'TDTG': 'taggingTime',
    'TENC': 'encodedBy',
    'TEXT': 'textWriter',
    'TFLT': 'fileType',
    'TIPL': 'involvedPeopleList',
    'TIME': 'time',
    'TIT1': 'contentGroup',
    'TIT2': 'title',
    'TIT3': 'subtitle',
    'TKEY': 'initialKey',
    'TLAN': 'language',
    'TLEN': 'length',
    'TMCL': 'musicianCreditsList',
    'TMED': 'mediaType',
    'TMOO': 'mood',
    'TOAL': 'originalTitle',
    'TOFN': 'originalFilename',
    'TOLY': 'originalTextWriter',
    'TOPE': 'originalArtist',
    'TORY': 'originalYear',
    'TOWN': 'fileOwner',
    'TPE1': 'artist',
    'TPE2': 'band',
    'TPE3': 'conductor',
    'TPE4': 'remixArtist',
    'TPOS': 'partOfSet',
    'TPRO': 'producedNotice',
    'TPUB': 'publisher',
    'TRCK': 'trackNumber',
    'TRDA': 'recordingDates',
    'TRSN': 'internetRadioName',
    'TRSO': 'internetRadioOwner',
    'TSIZ': 'size',
    'TSOA': 'albumSortOrder',
    'TSOP': 'performerSortOrder',
    'TSOT': 'titleSortOrder',
    'TSRC': 'isrc',
    'TSSE': 'encodingSettings',
    'TSST': 'setSubtitle',
    'TYER': 'year',
    'TXXX': 'userDefinedText',
    'UFID': 'uniqueFileIdentifier',
    'USER': 'termsOfUse',
    'USLT': 'unsynchronisedLyrics',
    'WCOM': 'commercialInformationURL',
    'WCOP': 'copyrightInformationURL',
    'WOAF': 'officialAudioFileURL',
    'WOAR': 'officialArtistURL',
    'WOAS': 'officialAudioSourceURL',
    'WORS': 'officialInternetRadioStationURL',
    'WPAY': 'paymentURL',
    'WPUB': 'publisherURL',
    'WXXX': 'userDefinedURL',
    # v2.2
    'BUF': 'recommendedBufferSize',
    'CNT': 'playCounter',
    'COM': 'comment',
    'CRA': 'audioEncryption',
    'CRM': 'encryptedMeta',
    'ETC': 'eventTimingCodes',
    'EQU': 'equalisation',
    'GEO': 'generalEncapsulatedObject',
    'IPL': 'involvedPeopleList',
    'LNK': 'linkedInformation',
    'MCI': 'musicCDIdentifier',
    'MLL': 'MPEGLocationLookupTable',
    'PIC': 'attachedPicture',
    'POP': 'popularimeter',
    'REV': 'reverb',
    'RVA': 'relativeVolumeAdjustment',
    'SLT': 'synchronisedLyric',
    'STC': 'synchronisedTempoCodes',
    'TAL': 'album',
    'TBP': 'bpm',
    'TCM': 'composer',
    'TCO': 'contentType',
    'TCR': 'copyright',
    'TDA': 'date',
    'TDY': 'playlistDelay',
    'TEN': 'encodedBy',
    'TFT': 'fileType',
    'TIM': 'time',
    'TKE': 'initialKey',
    'TLA': 'language',
    'TLE': 'length',
    'TMT': 'mediaType',
    'TOA': 'originalArtist',
    'TOF': 'originalFilename',
    'TOL': 'originalTextWriter',
    'TOR': 'originalYear',
    'TOT': 'originalTitle',
    'TP1': 'artist',
    'TP2': 'band',
    'TP3': 'conductor',
    'TP4': 'remixArtist',
    'TPA': 'partOfSet',
    'TPB': 'publisher',
    'TRC': 'isrc',
    'TRD': 'recordingDates',
    'TRK': 'trackNumber',
    'TSI': 'size',
    'TSS': 'encodingSettings',
    'TT1': 'contentGroup',
    'TT2': 'title',
    'TT3': 'subtitle',
    'TXT': 'textWriter',
    'TXX': 'userDefinedText',
    'TYE': 'year',
    'UFI': 'uniqueFileIdentifier',
    'ULT': 'unsynchronisedLyrics',
    'WAF': 'officialAudioFileURL',
    'WAR': 'officialArtistURL',
    'WAS': 'officialAudioSourceURL',
    'WCM': 'commercialInformationURL',
    'WCP': 'copyrightInformationURL',
    'WPB': 'publisherURL',
    'WXX': 'userDefinedURL',
}

PICTURE_TYPES = (
    'Other',
    '32x32 pixels file icon (PNG only)',
    'Other file icon',
    'Cover (front)',
    'Cover (back)',
    'Leaflet page',
    'Media',
    'Lead artist/lead performer/soloist',
    'Artist/performer',
    'Conductor',
    'Band/Orchestra',
    'Composer',
    'Lyricist/text writer',
    'Recording Location',
    'During recording',
    'During performance',
    'Movie/video screen capture',
    'A bright coloured fish',
    'Illustration',
    'Band/artist logotype',
    'Publisher/Studio logotype',
)

LYRICS3_FIELD_NAMES = {
    'IND': 'indications',
    'EAL': 'album',
    'EAR': 'artist',
    'ETT': 'title',
    'INF': 'info',
    'AUT': 'author',
    'IMG': 'images',
    'LYR': 'lyrics',
}

# Text encoding selector byte -> codec
TEXT_ENCODINGS = {
    0: 'latin-1',
    1: 'utf-16',
    2: 'utf-16-be',
    3: 'utf-8',
}


def frame_name(frame_id: str) -> str:
    """Readable name of a frame id ('unknown' when not in the table)"""
    if frame_id in FRAME_NAMES:
        return FRAME_NAMES[frame_id]
    if frame_id.startswith(EXPERIMENTAL_PREFIXES):
        return 'experimental'
    return 'unknown'


def genre_name(index: int) -> str:
    """Legacy genre byte lookup, empty for out-of-range values"""
    return GENRES[index] if 0 <= index < len(GENRES) else ''


def picture_type_name(code: int) -> str:
    return PICTURE_TYPES[code] if 0 <= code < len(PICTURE_TYPES) else ''
